"""
Storage collaborator for the check-in flow.

``CheckInStore`` is what the admission policy depends on; it carries no
SQL.  ``SqlCheckInStore`` implements it over an ``AsyncSession``.  Every
database failure is re-raised as ``StorageUnavailableError`` so callers
never mistake a failed lookup for "no duplicate".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from checkin.core.exceptions import StorageUnavailableError
from checkin.models.attendance import (DEVICE_DATE_CONSTRAINT,
                                       EMPLOYEE_DATE_CONSTRAINT,
                                       AttendanceRecord)
from checkin.models.department import Department
from checkin.models.employee import Employee

logger = logging.getLogger(__name__)


class InsertOutcome(str, Enum):
    INSERTED = "inserted"
    EMPLOYEE_CONFLICT = "employee_conflict"
    DEVICE_CONFLICT = "device_conflict"


@dataclass(frozen=True)
class NewAttendance:
    employee_code: str
    employee_name: str
    department_name: str
    rating: int
    device_id: str
    check_in_time: datetime
    check_in_date: str  # YYYY-MM-DD
    latitude: float | None = None
    longitude: float | None = None
    distance_meters: float | None = None


class CheckInStore(Protocol):
    async def find_departments(self) -> list[Department]: ...

    async def get_department(self, department_id: int) -> Department | None: ...

    async def find_active_employees(self, department_id: int) -> list[dict]: ...

    async def count_attendance_for_employee(self, employee_code: str, check_in_date: str) -> int: ...

    async def count_attendance_for_device(self, device_id: str, check_in_date: str) -> int: ...

    async def insert_attendance(self, record: NewAttendance) -> InsertOutcome: ...

    async def list_attendance_for_date(self, check_in_date: str) -> list[AttendanceRecord]: ...


class SqlCheckInStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Reference data ──────────────────────────────────────────────
    async def find_departments(self) -> list[Department]:
        try:
            result = await self.session.execute(select(Department).order_by(Department.name))
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to fetch departments") from exc
        return list(result.scalars().all())

    async def get_department(self, department_id: int) -> Department | None:
        try:
            result = await self.session.execute(
                select(Department).where(Department.id == department_id)
            )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to fetch department") from exc
        return result.scalar_one_or_none()

    async def find_active_employees(self, department_id: int) -> list[dict]:
        try:
            result = await self.session.execute(
                select(Employee.code, Employee.name, Department.name)
                .join(Department, Employee.department_id == Department.id)
                .where(Employee.department_id == department_id, Employee.is_active.is_(True))
                .order_by(Employee.name)
            )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to fetch employees") from exc
        return [
            {"code": code, "name": name, "department_name": department_name}
            for code, name, department_name in result.all()
        ]

    # ── Attendance ledger ───────────────────────────────────────────
    async def count_attendance_for_employee(self, employee_code: str, check_in_date: str) -> int:
        return await self._count(
            AttendanceRecord.employee_code == employee_code,
            AttendanceRecord.check_in_date == check_in_date,
        )

    async def count_attendance_for_device(self, device_id: str, check_in_date: str) -> int:
        return await self._count(
            AttendanceRecord.device_id == device_id,
            AttendanceRecord.check_in_date == check_in_date,
        )

    async def _count(self, *criteria) -> int:
        try:
            result = await self.session.execute(
                select(func.count(AttendanceRecord.id)).where(*criteria)
            )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to query attendance") from exc
        return result.scalar() or 0

    async def insert_attendance(self, record: NewAttendance) -> InsertOutcome:
        """Insert one row; the unique constraints decide who wins a race."""
        row = AttendanceRecord(
            employee_code=record.employee_code,
            employee_name=record.employee_name,
            department_name=record.department_name,
            rating=record.rating,
            device_id=record.device_id,
            latitude=record.latitude,
            longitude=record.longitude,
            distance_meters=record.distance_meters,
            check_in_time=record.check_in_time,
            check_in_date=record.check_in_date,
        )
        self.session.add(row)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Attendance insert lost a uniqueness race: %s", exc.orig)
            return await self._classify_conflict(record, exc)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageUnavailableError("Failed to record attendance") from exc
        return InsertOutcome.INSERTED

    async def _classify_conflict(self, record: NewAttendance, exc: IntegrityError) -> InsertOutcome:
        # Re-query so the employee key keeps priority when both keys collide
        if await self.count_attendance_for_employee(record.employee_code, record.check_in_date):
            return InsertOutcome.EMPLOYEE_CONFLICT
        if await self.count_attendance_for_device(record.device_id, record.check_in_date):
            return InsertOutcome.DEVICE_CONFLICT

        message = str(exc.orig).lower()
        if DEVICE_DATE_CONSTRAINT in message or "device_id" in message:
            return InsertOutcome.DEVICE_CONFLICT
        if EMPLOYEE_DATE_CONSTRAINT in message or "employee_code" in message:
            return InsertOutcome.EMPLOYEE_CONFLICT
        raise StorageUnavailableError("Unexpected constraint violation") from exc

    async def list_attendance_for_date(self, check_in_date: str) -> list[AttendanceRecord]:
        try:
            result = await self.session.execute(
                select(AttendanceRecord)
                .where(AttendanceRecord.check_in_date == check_in_date)
                .order_by(AttendanceRecord.check_in_time.desc())
            )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to fetch attendance") from exc
        return list(result.scalars().all())
