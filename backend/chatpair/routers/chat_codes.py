from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from chatpair.core.database import get_db
from chatpair.core.exceptions import CodeNotFoundError
from chatpair.schemas.chat_code import ChatCodeCreate, ChatCodeResponse, CodeLookupResponse
from chatpair.services.code_registry import CodeRegistry
from chatpair.routers.auth import get_current_user
from chatpair.models.user import User

router = APIRouter(prefix="/chat-codes", tags=["chat codes"])

@router.post("", response_model=ChatCodeResponse, status_code=status.HTTP_201_CREATED)
async def generate_code(payload: ChatCodeCreate, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    registry = CodeRegistry(db)
    return await registry.generate_code(
        owner_id=current_user.id,
        is_one_time=payload.is_one_time,
        validity_hours=payload.validity_hours,
    )

@router.get("", response_model=List[ChatCodeResponse])
async def list_my_codes(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    registry = CodeRegistry(db)
    return await registry.list_active_codes_for(current_user.id)

@router.get("/lookup/{code}", response_model=CodeLookupResponse)
async def lookup_code(code: str, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    registry = CodeRegistry(db)
    owner_id = await registry.is_code_active(code)
    if owner_id is None:
        raise CodeNotFoundError()
    return CodeLookupResponse(code=code, owner_id=owner_id)

@router.delete("/{code_id}", response_model=ChatCodeResponse)
async def retire_code(code_id: int, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    registry = CodeRegistry(db)
    return await registry.retire_code(code_id, owner_id=current_user.id)
