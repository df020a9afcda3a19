# passgate/schemas/scan.py
from typing import Literal, Optional

from pydantic import BaseModel

ScanVerdict = Literal["valid", "already_used", "invalid"]


class ScanResult(BaseModel):
    result: ScanVerdict
    passId: Optional[str] = None
    name: Optional[str] = None
    passType: Optional[str] = None
    teamName: Optional[str] = None
    memberCount: Optional[int] = None
    message: str
