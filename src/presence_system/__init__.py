"""Presence System package.

Tracks whether each registered student is currently inside or outside the facility.
Organized by feature modules (students, audit, activity, transitions, scheduler, sync)
with a thin Flask controller layer over service/repository layers.
"""
