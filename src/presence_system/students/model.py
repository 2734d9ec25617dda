from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import PresenceState


@dataclass(frozen=True)
class PersonSnapshot:
    """Display fields copied from the directory at the time of a transition."""

    student_id: str
    name: str
    department: str
    image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "name": self.name,
            "department": self.department,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, student_id: str, data: Dict[str, Any]) -> "PersonSnapshot":
        return cls(
            student_id=str(data.get("student_id") or student_id),
            name=str(data.get("name") or ""),
            department=str(data.get("department") or ""),
            image_url=data.get("image_url") or data.get("imageUrl"),
        )


@dataclass(frozen=True)
class Student:
    """Domain entity: one presence record per student.

    `version` increases on every status change and guards compare-and-set updates.
    """

    student_id: str
    name: str
    department: str
    status: PresenceState = PresenceState.OUT
    email: Optional[str] = None
    phone: Optional[str] = None
    semester: Optional[int] = None
    image_url: Optional[str] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def snapshot(self) -> PersonSnapshot:
        return PersonSnapshot(
            student_id=self.student_id,
            name=self.name,
            department=self.department,
            image_url=self.image_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "name": self.name,
            "department": self.department,
            "status": self.status.value,
            "email": self.email,
            "phone": self.phone,
            "semester": self.semester,
            "image_url": self.image_url,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }


@dataclass(frozen=True)
class PresenceCounts:
    inside: int
    outside: int

    @property
    def total(self) -> int:
        return self.inside + self.outside

    def to_dict(self) -> Dict[str, int]:
        return {"in": self.inside, "out": self.outside, "total": self.total}
