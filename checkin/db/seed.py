"""
Reference-data seeding — sample departments and employees.

Runs at startup when ``SEED_SAMPLE_DATA`` is on.  Each table is only
seeded while it is empty, so restarts are harmless.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from checkin.models.department import Department
from checkin.models.employee import Employee

logger = logging.getLogger(__name__)

SAMPLE_DEPARTMENTS = [
    "Human Resources",
    "Information Technology",
    "Finance",
    "Marketing",
    "Operations",
    "Sales",
]

# (code, name, department)
SAMPLE_EMPLOYEES = [
    ("HR001", "John Smith", "Human Resources"),
    ("HR002", "Sarah Johnson", "Human Resources"),
    ("IT001", "Mike Davis", "Information Technology"),
    ("IT002", "Emily Chen", "Information Technology"),
    ("IT003", "David Wilson", "Information Technology"),
    ("FIN001", "Lisa Brown", "Finance"),
    ("FIN002", "Robert Taylor", "Finance"),
    ("MKT001", "Jennifer Lee", "Marketing"),
    ("OPS001", "James Miller", "Operations"),
    ("SAL001", "Patricia Moore", "Sales"),
]


async def seed_reference_data(session: AsyncSession) -> None:
    dept_count = (await session.execute(select(func.count(Department.id)))).scalar() or 0
    if dept_count == 0:
        session.add_all([Department(name=name) for name in SAMPLE_DEPARTMENTS])
        await session.commit()
        logger.info("Sample departments inserted")
    else:
        logger.info("Departments already exist, skipping insertion")

    emp_count = (await session.execute(select(func.count(Employee.id)))).scalar() or 0
    if emp_count == 0:
        result = await session.execute(select(Department.name, Department.id))
        dept_ids = dict(result.all())
        session.add_all(
            [
                Employee(code=code, name=name, department_id=dept_ids[dept])
                for code, name, dept in SAMPLE_EMPLOYEES
                if dept in dept_ids
            ]
        )
        await session.commit()
        logger.info("Sample employees inserted")
    else:
        logger.info("Employees already exist, skipping insertion")
