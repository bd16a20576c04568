from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from chatpair.models.chat_request import RequestAction, RequestStatus

class ChatRequestCreate(BaseModel):
    code: str

class ChatRequestResolve(BaseModel):
    action: RequestAction

class ChatRequestResponse(BaseModel):
    id: int
    chat_code_id: int
    requested_by: int
    requested_to: int
    status: RequestStatus
    resolved_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class ExistingRequestResponse(BaseModel):
    request_id: Optional[int] = None
