from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from chatpair.core.database import Base
from chatpair.utils.time import utcnow
import enum

class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

class RequestAction(str, enum.Enum):
    ACCEPT = "accept"
    DECLINE = "decline"

class ChatRequest(Base):
    __tablename__ = "chat_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    chat_code_id: Mapped[int] = mapped_column(Integer, ForeignKey("chat_codes.id"), index=True, nullable=False)
    requested_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    requested_to: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)  # code owner at creation time
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        default=RequestStatus.PENDING,
        nullable=False,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)  # set on decline
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, server_default=func.now())

    def __repr__(self):
        return f"<ChatRequest(id={self.id}, status={self.status.value}, requested_by={self.requested_by}, requested_to={self.requested_to})>"
