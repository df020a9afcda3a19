# passgate/schemas/bulk.py
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, Field

BulkActionName = Literal[
    "markUsed",
    "revertUsed",
    "forceVerifyPayment",
    "softDelete",
    "delete",
    "activateEvent",
    "deactivateEvent",
]

TargetCollection = Literal["passes", "payments", "teams", "users", "events"]


class BulkActionRequest(BaseModel):
    action: BulkActionName
    targetCollection: TargetCollection
    targetIds: List[Annotated[str, Field(min_length=1)]] = Field(..., max_length=100)


class BulkItemError(BaseModel):
    id: str
    error: str


class BulkActionResponse(BaseModel):
    success: bool = True
    updated: int
    errors: Optional[List[BulkItemError]] = None
