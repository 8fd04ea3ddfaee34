"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from checkin.api.v1.endpoints import checkin, health

api_router = APIRouter()

# Departments, employees, time status, attendance
api_router.include_router(checkin.router)

# Health
api_router.include_router(health.router)
