# passgate/schemas/token.py
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TokenPayload(BaseModel):
    """Claims carried by an admin bearer token."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    role: Optional[str] = None
    isOrganizer: Optional[bool] = None
    email: Optional[str] = None
    exp: Optional[int] = None


@dataclass(frozen=True)
class AdminContext:
    """The authenticated admin performing a request."""

    user_id: str
    role: str
    ip_address: Optional[str] = None
