"""
Check-in endpoints — department/employee pickers, time status and the
attendance submission itself.

All routes are public: the form has no login, and duplicate protection
relies on the employee code and the resolved device identifier.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request

from checkin.api.v1.deps import get_admission_policy, get_clock, get_store
from checkin.core.device import resolve_device_id
from checkin.core.exceptions import CheckInRejectedError
from checkin.schemas.attendance import (AttendanceRead, CheckInRequest,
                                        CheckInResponse, DepartmentRead,
                                        EmployeeOption, TimeStatusResponse)
from checkin.services.admission import (AdmissionPolicy, CheckInSubmission,
                                        Rejected)
from checkin.services.store import CheckInStore

router = APIRouter(tags=["checkin"])
logger = logging.getLogger(__name__)


# ── Reference data ──────────────────────────────────────────────────
@router.get("/departments", response_model=list[DepartmentRead])
async def list_departments(store: CheckInStore = Depends(get_store)):
    return await store.find_departments()


@router.get("/departments/{department_id}/employees", response_model=list[EmployeeOption])
async def list_department_employees(
    department_id: int,
    store: CheckInStore = Depends(get_store),
) -> list[dict]:
    """Active employees of one department, ordered by name."""
    if await store.get_department(department_id) is None:
        raise HTTPException(status_code=404, detail="Department not found")
    return await store.find_active_employees(department_id)


# ── Time status (polled by the form every ~30 s) ────────────────────
@router.get("/time-status", response_model=TimeStatusResponse)
async def time_status(
    policy: AdmissionPolicy = Depends(get_admission_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TimeStatusResponse:
    status = policy.window.evaluate(clock())
    return TimeStatusResponse(
        is_punch_in_allowed=status.allowed,
        phase=status.phase,
        message=status.message,
        current_time=status.current_time,
        timezone=status.timezone,
        window_start=status.window_start,
        window_end=status.window_end,
    )


# ── Check-in ────────────────────────────────────────────────────────
@router.post("/attendance", response_model=CheckInResponse)
async def check_in(
    body: CheckInRequest,
    request: Request,
    store: CheckInStore = Depends(get_store),
    policy: AdmissionPolicy = Depends(get_admission_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> CheckInResponse:
    """Record today's attendance for one employee, or explain why not."""
    device_id = resolve_device_id(request.headers, request.client.host if request.client else None)
    logger.debug("Check-in submission from device %s", device_id)
    submission = CheckInSubmission(
        employee_code=body.employee_id,
        employee_name=body.employee_name,
        department_name=body.department_name,
        rating=body.rating,
        device_id=device_id,
        location=body.location,
    )

    result = await policy.evaluate(submission, store, now=clock())
    if isinstance(result, Rejected):
        raise CheckInRejectedError(result)

    return CheckInResponse(
        success=True,
        message="Attendance recorded successfully",
        employee_id=result.employee_code,
        employee_name=result.employee_name,
        department_name=result.department_name,
        rating=result.rating,
        check_in_time=result.check_in_time,
        check_in_date=result.check_in_date,
        distance_meters=round(result.distance_meters, 1) if result.distance_meters is not None else None,
    )


# ── Today's feed ────────────────────────────────────────────────────
@router.get("/attendance/today", response_model=list[AttendanceRead])
async def attendance_today(
    store: CheckInStore = Depends(get_store),
    policy: AdmissionPolicy = Depends(get_admission_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Today's check-ins (local date), newest first.

    Records are snapshots, so employees deactivated since still show up.
    """
    today = policy.window.local_date(clock()).isoformat()
    return await store.list_attendance_for_date(today)
