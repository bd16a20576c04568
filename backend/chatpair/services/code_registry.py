import math
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chatpair.core.config import get_settings
from chatpair.core.exceptions import (
    CodeGenerationExhaustedError,
    CodeNotFoundError,
    InvalidValidityError,
    UnauthorizedError,
)
from chatpair.models.chat_code import ChatCode
from chatpair.utils.code_format import draw_code, validate_code_format
from chatpair.utils.logger import get_logger
from chatpair.utils.time import utcnow

logger = get_logger("code_registry")
settings = get_settings()


class CodeRegistry:
    """Issues, looks up and retires shareable chat codes."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
        rng=None,
        max_attempts: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.rng = rng
        self.max_attempts = max_attempts or settings.CODE_GENERATION_MAX_ATTEMPTS

    def _expires_at(self, validity_hours, now: datetime) -> Optional[datetime]:
        if isinstance(validity_hours, bool) or not isinstance(validity_hours, (int, float)):
            raise InvalidValidityError()
        if not math.isfinite(validity_hours) or validity_hours < 0:
            raise InvalidValidityError()
        if validity_hours == 0:
            return None
        try:
            return now + timedelta(hours=validity_hours)
        except OverflowError:
            raise InvalidValidityError("Validity hours reach past the largest supported date")

    async def _is_reserved(self, code: str) -> bool:
        # Expired but unretired rows still hold their digits, see the unique index on ChatCode.
        result = await self.db.execute(
            select(ChatCode.id).where(ChatCode.code == code, ChatCode.unretired_clause()).limit(1)
        )
        return result.first() is not None

    async def generate_code(self, owner_id: int, is_one_time: bool, validity_hours: float) -> ChatCode:
        now = self.clock()
        expires_at = self._expires_at(validity_hours, now)

        for attempt in range(1, self.max_attempts + 1):
            code = draw_code(self.rng)
            if await self._is_reserved(code):
                logger.info(f"Chat code collision on attempt {attempt}, drawing again")
                continue

            chat_code = ChatCode(
                code=code,
                owner_id=owner_id,
                is_one_time=is_one_time,
                expires_at=expires_at,
                deleted_at=None,
                created_at=now,
            )
            self.db.add(chat_code)
            try:
                await self.db.commit()
            except IntegrityError:
                # Another caller inserted the same digits after our check.
                await self.db.rollback()
                logger.warning(f"Chat code insert conflict on attempt {attempt}, drawing again")
                continue

            logger.info(
                f"Chat code {chat_code.id} created for user_id: {owner_id} "
                f"(one_time={is_one_time}, expires_at={expires_at})"
            )
            return chat_code

        logger.error(f"Gave up generating a chat code for user_id: {owner_id} after {self.max_attempts} attempts")
        raise CodeGenerationExhaustedError()

    async def get_active_code(self, code: str) -> Optional[ChatCode]:
        validate_code_format(code)
        result = await self.db.execute(
            select(ChatCode)
            .where(ChatCode.code == code, ChatCode.active_clause(self.clock()))
            .execution_options(populate_existing=True)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def is_code_active(self, code: str) -> Optional[int]:
        """Return the owner id of the active code, or None if there is none."""
        chat_code = await self.get_active_code(code)
        if chat_code is None:
            return None
        return chat_code.owner_id

    async def list_active_codes_for(self, owner_id: int) -> List[ChatCode]:
        result = await self.db.execute(
            select(ChatCode)
            .where(ChatCode.owner_id == owner_id, ChatCode.active_clause(self.clock()))
            .order_by(ChatCode.created_at.desc(), ChatCode.id.desc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    def mark_retired(self, chat_code: ChatCode, now: Optional[datetime] = None) -> bool:
        """Set deleted_at on an attached record without committing. False if it was already retired."""
        if chat_code.deleted_at is not None:
            return False
        chat_code.deleted_at = now or self.clock()
        return True

    async def retire_code(self, code_id: int, owner_id: Optional[int] = None) -> ChatCode:
        chat_code = await self.db.get(ChatCode, code_id, populate_existing=True, with_for_update=True)
        if chat_code is None:
            raise CodeNotFoundError()
        if owner_id is not None and chat_code.owner_id != owner_id:
            logger.warning(f"User {owner_id} tried to retire chat code {code_id} owned by {chat_code.owner_id}")
            raise UnauthorizedError()

        if self.mark_retired(chat_code):
            await self.db.commit()
            logger.info(f"Chat code {code_id} retired")
        return chat_code

    async def retire_expired_codes(self) -> int:
        """Soft-delete every unretired code whose expiry has passed. Returns the number retired."""
        now = self.clock()
        result = await self.db.execute(
            update(ChatCode)
            .where(
                ChatCode.deleted_at.is_(None),
                ChatCode.expires_at.is_not(None),
                ChatCode.expires_at <= now,
            )
            .values(deleted_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        logger.info(f"Retired {result.rowcount} expired chat codes")
        return result.rowcount
