"""Pydantic schemas for the manager / driver dashboards."""

from __future__ import annotations

from freightdesk.schemas.common import APIModel


class ManagerDashboard(APIModel):
    total_loads: int = 0
    pending_loads: int = 0
    accepted_loads: int = 0
    completed_loads: int = 0
    rejected_loads: int = 0
    total_income: float = 0.0
    pending_payments: float = 0.0


class DriverDashboard(APIModel):
    assigned_loads: int = 0
    accepted_loads: int = 0
    completed_loads: int = 0
    rejected_loads: int = 0
    total_earnings: float = 0.0
    pending_earnings: float = 0.0


class ManagerDashboardResponse(APIModel):
    success: bool = True
    dashboard: ManagerDashboard


class DriverDashboardResponse(APIModel):
    success: bool = True
    dashboard: DriverDashboard


class HealthResponse(APIModel):
    success: bool = True
    message: str
    version: str
    timestamp: str
    database: bool = True
