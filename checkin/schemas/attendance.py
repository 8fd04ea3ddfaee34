"""Pydantic schemas for Departments / Employees / Check-in."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


# ── Reference data ─────────────────────────────────────────────────
class DepartmentRead(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class EmployeeOption(BaseModel):
    code: str
    name: str
    department_name: str


# ── Check-in ───────────────────────────────────────────────────────
class CheckInRequest(BaseModel):
    # Deliberately loose: the admission policy owns field validation so that
    # bad input is reported as InvalidInput rather than a bare 422.
    employee_id: Any = None
    employee_name: Any = None
    department_name: Any = None
    rating: Any = None
    location: Any = None


class CheckInResponse(BaseModel):
    success: bool
    message: str
    employee_id: str
    employee_name: str
    department_name: str
    rating: int
    check_in_time: datetime
    check_in_date: str
    distance_meters: float | None = None


class AttendanceRead(BaseModel):
    id: int
    employee_code: str
    employee_name: str
    department_name: str
    rating: int
    device_id: str
    latitude: float | None = None
    longitude: float | None = None
    distance_meters: float | None = None
    check_in_time: datetime | None
    check_in_date: str

    model_config = {"from_attributes": True}


# ── Time status (polled by the form) ───────────────────────────────
class TimeStatusResponse(BaseModel):
    is_punch_in_allowed: bool
    phase: str
    message: str
    current_time: str
    timezone: str
    window_start: str
    window_end: str


# ── Health ─────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool
