# passgate/schemas/mutations.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

PassStatusValue = Literal["paid", "used"]
PaymentStatusValue = Literal["pending", "success", "failed"]
OnSpotPassType = Literal["day_pass", "group_events", "sana_concert", "test_pass"]


# ---- passes ----

class PassActionRequest(BaseModel):
    action: Literal["markUsed", "revertUsed"]


class PassActionResponse(BaseModel):
    success: bool = True
    passId: str
    status: str


class PassUpdateRequest(BaseModel):
    passId: str = Field(..., min_length=1)
    status: Optional[PassStatusValue] = None
    selectedEvents: Optional[List[str]] = None
    teamId: Optional[str] = None
    regenerateQr: Optional[bool] = None
    isArchived: Optional[bool] = None


class PassUpdateResponse(BaseModel):
    success: bool = True
    passId: str
    status: Optional[str] = None
    isArchived: bool = False


class PassQrResponse(BaseModel):
    passId: str
    qrCodeUrl: str


# ---- payments ----

class PaymentUpdateRequest(BaseModel):
    paymentId: str = Field(..., min_length=1)
    status: Optional[PaymentStatusValue] = None
    note: Optional[str] = Field(None, max_length=1000)
    isArchived: Optional[bool] = None


class PaymentUpdateResponse(BaseModel):
    success: bool = True
    paymentId: str
    status: Optional[str] = None
    isArchived: bool = False


# ---- users ----

class UserUpdateRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    name: Optional[str] = None
    phone: Optional[str] = None
    college: Optional[str] = None
    isOrganizer: Optional[bool] = None
    isArchived: Optional[bool] = None


class UserUpdateResponse(BaseModel):
    success: bool = True
    userId: str
    name: Optional[str] = None
    phone: Optional[str] = None
    college: Optional[str] = None
    isOrganizer: Optional[bool] = None
    isArchived: bool = False


# ---- events ----

class EventUpdateRequest(BaseModel):
    eventId: str = Field(..., min_length=1)
    name: Optional[str] = None
    venue: Optional[str] = None
    date: Optional[str] = None
    allowedPassTypes: Optional[List[str]] = None
    isActive: Optional[bool] = None
    registrationOpen: Optional[bool] = None


class EventUpdateResponse(BaseModel):
    success: bool = True
    eventId: str
    isActive: Optional[bool] = None
    isArchived: bool = False


# ---- teams ----

class TeamMemberInput(BaseModel):
    model_config = ConfigDict(extra="allow")

    memberId: Optional[str] = None
    name: str = Field(..., min_length=1)
    phone: str = ""
    email: Optional[str] = None
    college: Optional[str] = None
    isLeader: bool = False


class TeamUpdateRequest(BaseModel):
    teamId: str = Field(..., min_length=1)
    teamName: Optional[str] = Field(None, min_length=1)
    members: Optional[List[TeamMemberInput]] = None
    resetAttendance: Optional[bool] = None
    removeMemberId: Optional[str] = None
    isArchived: Optional[bool] = None


class TeamUpdateResponse(BaseModel):
    success: bool = True
    teamId: str
    totalMembers: int
    isArchived: bool = False


class AttendanceUpdateRequest(BaseModel):
    checkedIn: bool


# ---- on-spot ----

class OnSpotMember(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None
    college: Optional[str] = None


class OnSpotRegistrationRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    phone: str = Field(..., min_length=1)
    college: str = Field(..., min_length=1)
    passType: OnSpotPassType
    paymentMode: Literal["cash", "upi"] = "cash"
    selectedEvents: List[str] = Field(default_factory=list)
    teamName: Optional[str] = None
    members: Optional[List[OnSpotMember]] = None
    amount: Optional[float] = Field(None, gt=0)
    pricePerPerson: Optional[float] = Field(None, gt=0)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class OnSpotRegistrationResponse(BaseModel):
    success: bool = True
    passId: str
    paymentId: str
    userId: str
    orderId: str
    teamId: Optional[str] = None
    amount: float
