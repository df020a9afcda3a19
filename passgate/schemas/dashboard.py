# passgate/schemas/dashboard.py
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict

DashboardMode = Literal["operations", "financial"]


class OperationsRecord(BaseModel):
    """A registration row without money fields."""

    model_config = ConfigDict(from_attributes=True)

    passId: str
    name: str
    email: str
    college: str
    phone: str
    eventName: str
    passType: str
    payment: Literal["Confirmed"] = "Confirmed"
    createdAt: str
    eventCategory: Optional[str] = None
    eventType: Optional[str] = None


class FinancialRecord(BaseModel):
    """A registration row including payment details (superadmin only)."""

    userId: str
    passId: str
    paymentId: str
    name: str
    email: str
    college: str
    phone: str
    eventName: str
    passType: str
    amount: float
    paymentStatus: str
    orderId: str
    createdAt: str
    eventCategory: Optional[str] = None
    eventType: Optional[str] = None


class DashboardMetrics(BaseModel):
    totalSuccessfulRegistrations: Optional[int] = None
    registrationsToday: Optional[int] = None
    registrationsPerPassType: Optional[Dict[str, int]] = None


class RevenueSummary(BaseModel):
    totalRevenue: float


class OperationsDashboardResponse(BaseModel):
    records: List[OperationsRecord]
    page: int
    pageSize: int
    nextCursor: Optional[str] = None
    metrics: Optional[DashboardMetrics] = None


class FinancialDashboardResponse(BaseModel):
    records: List[FinancialRecord]
    page: int
    pageSize: int
    nextCursor: Optional[str] = None
    metrics: Optional[DashboardMetrics] = None
    summary: RevenueSummary
