from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatpair.core.exceptions import (
    AlreadyResolvedError,
    CodeNotFoundError,
    DuplicateRequestError,
    SelfRequestError,
    UnauthorizedError,
)
from chatpair.models.chat_code import ChatCode
from chatpair.models.chat_request import ChatRequest, RequestAction, RequestStatus
from chatpair.services.code_registry import CodeRegistry
from chatpair.utils.code_format import validate_code_format
from chatpair.utils.logger import get_logger
from chatpair.utils.time import utcnow

logger = get_logger("request_ledger")


class RequestLedger:
    """Records chat requests made through a code and their accept/decline outcome.

    Every call re-reads the rows it acts on; nothing is cached between calls.
    """

    def __init__(
        self,
        db: AsyncSession,
        registry: Optional[CodeRegistry] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.clock = clock
        self.registry = registry or CodeRegistry(db, clock=clock)

    async def _find_active_request(self, requester_id: int, chat_code_id: int) -> Optional[ChatRequest]:
        result = await self.db.execute(
            select(ChatRequest)
            .where(
                ChatRequest.requested_by == requester_id,
                ChatRequest.chat_code_id == chat_code_id,
                ChatRequest.deleted_at.is_(None),
            )
            .execution_options(populate_existing=True)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_request(self, requester_id: int, code: str) -> ChatRequest:
        """Create a pending request from ``requester_id`` to the owner of ``code``.

        Checks run in order and the first failure is raised: code format,
        active code, requester is not the owner, no active request for the
        same (requester, code) pair.
        """
        validate_code_format(code)

        chat_code = await self.registry.get_active_code(code)
        if chat_code is None:
            logger.warning(f"User {requester_id} requested unknown or inactive chat code")
            raise CodeNotFoundError()

        if chat_code.owner_id == requester_id:
            raise SelfRequestError()

        if await self._find_active_request(requester_id, chat_code.id) is not None:
            logger.warning(f"User {requester_id} already has an active request for chat code {chat_code.id}")
            raise DuplicateRequestError()

        request = ChatRequest(
            chat_code_id=chat_code.id,
            requested_by=requester_id,
            requested_to=chat_code.owner_id,
            status=RequestStatus.PENDING,
            resolved_at=None,
            deleted_at=None,
            created_at=self.clock(),
        )
        self.db.add(request)
        await self.db.commit()
        logger.info(f"Chat request {request.id} created: {requester_id} -> {chat_code.owner_id}")
        return request

    async def get_existing_request(self, requester_id: int, code: str) -> Optional[ChatRequest]:
        """Return the caller's active request for ``code``, if the code is active and one exists."""
        chat_code = await self.registry.get_active_code(code)
        if chat_code is None:
            return None
        return await self._find_active_request(requester_id, chat_code.id)

    async def list_incoming(self, user_id: int) -> List[ChatRequest]:
        # Insertion order only.
        result = await self.db.execute(
            select(ChatRequest)
            .where(ChatRequest.requested_to == user_id, ChatRequest.deleted_at.is_(None))
            .order_by(ChatRequest.id.asc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def list_outgoing(self, user_id: int) -> List[ChatRequest]:
        result = await self.db.execute(
            select(ChatRequest)
            .where(ChatRequest.requested_by == user_id, ChatRequest.deleted_at.is_(None))
            .order_by(ChatRequest.id.asc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def resolve_request(self, request_id: int, resolver_id: int, action: RequestAction) -> ChatRequest:
        action = RequestAction(action)

        request = await self.db.get(ChatRequest, request_id, populate_existing=True, with_for_update=True)
        if request is None or request.requested_to != resolver_id:
            logger.warning(f"User {resolver_id} may not resolve chat request {request_id}")
            raise UnauthorizedError("Request not found or unauthorized")

        if request.status != RequestStatus.PENDING:
            raise AlreadyResolvedError()

        now = self.clock()
        request.resolved_at = now
        if action == RequestAction.ACCEPT:
            request.status = RequestStatus.ACCEPTED
            chat_code = await self.db.get(ChatCode, request.chat_code_id, populate_existing=True, with_for_update=True)
            # One-time codes stop working once a request through them is accepted.
            if chat_code is not None and chat_code.is_one_time and self.registry.mark_retired(chat_code, now):
                logger.info(f"One-time chat code {chat_code.id} retired on accept")
        else:
            request.status = RequestStatus.DECLINED
            request.deleted_at = now

        await self.db.commit()
        logger.info(f"Chat request {request_id} {request.status.value} by user_id: {resolver_id}")
        return request
