from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from presence_system.activity.policy import EvictionPolicy


def test_defaults_derive_every_window_from_retention_hours():
    policy = EvictionPolicy()
    created = datetime(2026, 3, 2, 9, 0)

    assert policy.expires_at(created) == created + timedelta(hours=24)
    assert policy.weekly_sweep_hours == 168
    assert policy.weekly_cutoff(created) == created - timedelta(days=7)


def test_custom_retention_scales_weekly_sweep():
    policy = EvictionPolicy(retention_hours=12, weekly_multiplier=2)

    assert policy.ttl == timedelta(hours=12)
    assert policy.weekly_sweep_hours == 24


@pytest.mark.parametrize("kwargs", [{"retention_hours": 0}, {"weekly_multiplier": -1}])
def test_rejects_non_positive_windows(kwargs):
    with pytest.raises(ValueError):
        EvictionPolicy(**kwargs)
