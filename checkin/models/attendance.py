"""
AttendanceRecord model — one accepted check-in.

Name and department are snapshots taken at check-in time, so there is no
foreign key to ``employees``.  The two unique constraints are what make
"one check-in per employee per day" and "one per device per day" hold
under concurrent submissions.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (CheckConstraint, Column, DateTime, Float, Integer,
                        String, UniqueConstraint)

from checkin.db.base import Base

EMPLOYEE_DATE_CONSTRAINT = "uq_attendance_employee_date"
DEVICE_DATE_CONSTRAINT = "uq_attendance_device_date"


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_code", "check_in_date", name=EMPLOYEE_DATE_CONSTRAINT),
        UniqueConstraint("device_id", "check_in_date", name=DEVICE_DATE_CONSTRAINT),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_attendance_rating"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_code: str = Column(String(20), nullable=False, index=True)  # type: ignore[assignment]
    employee_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    department_name: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    rating: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    device_id: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    latitude: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    longitude: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    distance_meters: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
    check_in_time: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    check_in_date: str = Column(String(10), nullable=False, index=True)  # type: ignore[assignment]  # YYYY-MM-DD local
