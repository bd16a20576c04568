from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class ChatCodeCreate(BaseModel):
    is_one_time: bool = Field(..., strict=True)
    # strict: JSON true/false must not turn into 1.0/0.0 hours
    validity_hours: float = Field(..., strict=True, allow_inf_nan=False, description="0 means the code never expires")

class ChatCodeResponse(BaseModel):
    id: int
    code: str
    owner_id: int
    is_one_time: bool
    expires_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class CodeLookupResponse(BaseModel):
    code: str
    owner_id: int
