"""
Attendance admission policy — decides whether a check-in is accepted.

Checks run in a fixed order and the first failure wins:

1. structural validation      -> InvalidInput
2. punch-in window            -> OutsideTimeWindow
3. geofence (when enabled)    -> LocationRequired / OutsideGeofence
4. employee already in today  -> AlreadyCheckedIn
5. device already used today  -> DeviceAlreadyUsed
6. insert                     -> Accepted

Steps 4 and 5 are only a fast path.  The insert itself is guarded by unique
constraints in the store, and a conflict there is reported with the same
reason codes, so concurrent submissions cannot both be accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from checkin.core.config import Settings
from checkin.core.exceptions import StorageUnavailableError
from checkin.core.geo import haversine_distance, is_valid_coordinate
from checkin.core.time_window import PunchInWindow
from checkin.services.store import CheckInStore, InsertOutcome, NewAttendance

logger = logging.getLogger(__name__)

STORAGE_UNAVAILABLE_MESSAGE = "Attendance service is temporarily unavailable. Please try again."
DEVICE_ALREADY_USED_MESSAGE = (
    "This device has already been used to check in today. "
    "Each device can only check in once per day."
)


class RejectionReason(str, Enum):
    INVALID_INPUT = "InvalidInput"
    OUTSIDE_TIME_WINDOW = "OutsideTimeWindow"
    LOCATION_REQUIRED = "LocationRequired"
    OUTSIDE_GEOFENCE = "OutsideGeofence"
    ALREADY_CHECKED_IN = "AlreadyCheckedIn"
    DEVICE_ALREADY_USED = "DeviceAlreadyUsed"
    STORAGE_UNAVAILABLE = "StorageUnavailable"


# Resubmitting cannot succeed today after one of these
TERMINAL_REASONS = frozenset(
    {RejectionReason.ALREADY_CHECKED_IN, RejectionReason.DEVICE_ALREADY_USED}
)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class CheckInSubmission:
    employee_code: Any
    employee_name: Any
    department_name: Any
    rating: Any
    device_id: str
    location: Any = None


@dataclass(frozen=True)
class Accepted:
    employee_code: str
    employee_name: str
    department_name: str
    rating: int
    check_in_time: datetime
    check_in_date: str
    distance_meters: float | None = None


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str
    distance_meters: float | None = None
    radius_meters: float | None = None

    @property
    def terminal(self) -> bool:
        return self.reason in TERMINAL_REASONS


@dataclass(frozen=True)
class Geofence:
    latitude: float
    longitude: float
    radius_meters: float
    enabled: bool = True

    def distance_to(self, location: Location) -> float:
        return haversine_distance(
            location.latitude, location.longitude, self.latitude, self.longitude
        )


# Column widths of the attendance table
MAX_CODE_LENGTH = 20
MAX_NAME_LENGTH = 100
MAX_DEPARTMENT_LENGTH = 50


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _too_long(value: str, limit: int) -> bool:
    return len(value.strip()) > limit


def _valid_rating(value: Any) -> bool:
    # bool is an int subclass; True must not count as a 1-star rating
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 5


def as_location(value: Any) -> Location | None:
    """Coerce a submitted location into a ``Location``.

    Accepts ``None``, a ``Location``, or a mapping with ``latitude`` and
    ``longitude`` keys.  Anything else raises ``ValueError``.  Coordinate
    ranges are checked separately by :func:`is_valid_coordinate`.
    """
    if value is None or isinstance(value, Location):
        return value
    if isinstance(value, Mapping) and "latitude" in value and "longitude" in value:
        return Location(latitude=value["latitude"], longitude=value["longitude"])
    raise ValueError("location must be an object with latitude and longitude")


class AdmissionPolicy:
    def __init__(self, window: PunchInWindow, geofence: Geofence) -> None:
        self.window = window
        self.geofence = geofence

    @classmethod
    def from_settings(cls, cfg: Settings) -> "AdmissionPolicy":
        return cls(
            window=PunchInWindow.from_settings(cfg),
            geofence=Geofence(
                latitude=cfg.OFFICE_LATITUDE,
                longitude=cfg.OFFICE_LONGITUDE,
                radius_meters=cfg.GEOFENCE_RADIUS_METERS,
                enabled=cfg.GEOFENCE_ENABLED,
            ),
        )

    def validate(self, submission: CheckInSubmission) -> Rejected | None:
        if _blank(submission.employee_code):
            return Rejected(RejectionReason.INVALID_INPUT, "Employee selection is required (employee_id)")
        if _blank(submission.employee_name):
            return Rejected(RejectionReason.INVALID_INPUT, "Employee selection is required (employee_name)")
        if _blank(submission.department_name):
            return Rejected(RejectionReason.INVALID_INPUT, "Department is required (department_name)")
        if _too_long(submission.employee_code, MAX_CODE_LENGTH):
            return Rejected(RejectionReason.INVALID_INPUT, f"Employee code is too long (employee_id, max {MAX_CODE_LENGTH})")
        if _too_long(submission.employee_name, MAX_NAME_LENGTH):
            return Rejected(RejectionReason.INVALID_INPUT, f"Employee name is too long (employee_name, max {MAX_NAME_LENGTH})")
        if _too_long(submission.department_name, MAX_DEPARTMENT_LENGTH):
            return Rejected(
                RejectionReason.INVALID_INPUT, f"Department name is too long (department_name, max {MAX_DEPARTMENT_LENGTH})"
            )
        if not _valid_rating(submission.rating):
            return Rejected(RejectionReason.INVALID_INPUT, "Valid rating (1-5 stars) is required (rating)")
        try:
            location = as_location(submission.location)
        except ValueError:
            return Rejected(
                RejectionReason.INVALID_INPUT,
                "Location must be an object with latitude and longitude (location)",
            )
        if location is not None and not is_valid_coordinate(location.latitude, location.longitude):
            return Rejected(
                RejectionReason.INVALID_INPUT,
                "Location must have latitude in [-90, 90] and longitude in [-180, 180] (location)",
            )
        return None

    def check_geofence(self, location: Location | None) -> Rejected | None:
        if not self.geofence.enabled:
            return None
        if location is None:
            return Rejected(
                RejectionReason.LOCATION_REQUIRED,
                "Location access is required to check in. Please enable location services.",
            )
        distance = self.geofence.distance_to(location)
        if distance > self.geofence.radius_meters:
            return Rejected(
                RejectionReason.OUTSIDE_GEOFENCE,
                f"You are {round(distance)}m away from the office. Only employees within "
                f"{self.geofence.radius_meters:g}m of the office can check in.",
                distance_meters=distance,
                radius_meters=self.geofence.radius_meters,
            )
        return None

    async def evaluate(
        self,
        submission: CheckInSubmission,
        store: CheckInStore,
        now: datetime | None = None,
    ) -> Accepted | Rejected:
        """Run every check in order and record the check-in if all pass."""
        now = now or datetime.now(timezone.utc)

        rejection = self.validate(submission)
        if rejection is not None:
            return self._reject(submission, rejection)

        code = submission.employee_code.strip()
        name = submission.employee_name.strip()
        department = submission.department_name.strip()
        logger.info("Check-in attempt: %s (%s), department %s", name, code, department)

        status = self.window.evaluate(now)
        if not status.allowed:
            return self._reject(
                submission, Rejected(RejectionReason.OUTSIDE_TIME_WINDOW, status.message)
            )

        location = as_location(submission.location)
        rejection = self.check_geofence(location)
        if rejection is not None:
            return self._reject(submission, rejection)

        distance = self.geofence.distance_to(location) if location is not None else None
        check_in_date = self.window.local_date(now).isoformat()
        already_in = Rejected(
            RejectionReason.ALREADY_CHECKED_IN,
            f"{name} ({code}) has already checked in today. Duplicate punch-in is not allowed.",
        )
        device_used = Rejected(RejectionReason.DEVICE_ALREADY_USED, DEVICE_ALREADY_USED_MESSAGE)

        try:
            if await store.count_attendance_for_employee(code, check_in_date):
                return self._reject(submission, already_in)
            if await store.count_attendance_for_device(submission.device_id, check_in_date):
                return self._reject(submission, device_used)

            outcome = await store.insert_attendance(
                NewAttendance(
                    employee_code=code,
                    employee_name=name,
                    department_name=department,
                    rating=submission.rating,
                    device_id=submission.device_id,
                    check_in_time=now,
                    check_in_date=check_in_date,
                    latitude=location.latitude if location else None,
                    longitude=location.longitude if location else None,
                    distance_meters=distance,
                )
            )
        except StorageUnavailableError as exc:
            logger.error("Check-in for %s aborted: %s", code, exc, exc_info=True)
            return Rejected(RejectionReason.STORAGE_UNAVAILABLE, STORAGE_UNAVAILABLE_MESSAGE)

        if outcome is InsertOutcome.EMPLOYEE_CONFLICT:
            return self._reject(submission, already_in)
        if outcome is InsertOutcome.DEVICE_CONFLICT:
            return self._reject(submission, device_used)

        logger.info("Attendance recorded: %s (%s) on %s", name, code, check_in_date)
        return Accepted(
            employee_code=code,
            employee_name=name,
            department_name=department,
            rating=submission.rating,
            check_in_time=now,
            check_in_date=check_in_date,
            distance_meters=distance,
        )

    @staticmethod
    def _reject(submission: CheckInSubmission, rejection: Rejected) -> Rejected:
        logger.info(
            "Check-in rejected (%s) for %r: %s",
            rejection.reason.value,
            submission.employee_code,
            rejection.message,
        )
        return rejection
