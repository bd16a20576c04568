from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from chatpair.core.database import get_db
from chatpair.schemas.chat_request import ChatRequestCreate, ChatRequestResolve, ChatRequestResponse, ExistingRequestResponse
from chatpair.services.request_ledger import RequestLedger
from chatpair.routers.auth import get_current_user
from chatpair.models.user import User

router = APIRouter(prefix="/chat-requests", tags=["chat requests"])

@router.post("", response_model=ChatRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(payload: ChatRequestCreate, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    ledger = RequestLedger(db)
    return await ledger.create_request(current_user.id, payload.code)

@router.get("/incoming", response_model=List[ChatRequestResponse])
async def list_incoming(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    ledger = RequestLedger(db)
    return await ledger.list_incoming(current_user.id)

@router.get("/outgoing", response_model=List[ChatRequestResponse])
async def list_outgoing(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    ledger = RequestLedger(db)
    return await ledger.list_outgoing(current_user.id)

@router.get("/by-code/{code}", response_model=ExistingRequestResponse)
async def get_existing_request(code: str, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    ledger = RequestLedger(db)
    request = await ledger.get_existing_request(current_user.id, code)
    return ExistingRequestResponse(request_id=request.id if request else None)

@router.post("/{request_id}/resolve", response_model=ChatRequestResponse)
async def resolve_request(request_id: int, payload: ChatRequestResolve, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    ledger = RequestLedger(db)
    return await ledger.resolve_request(request_id, current_user.id, payload.action)
