from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Index, and_, or_, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from chatpair.core.database import Base
from chatpair.utils.time import utcnow

class ChatCode(Base):
    __tablename__ = "chat_codes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    code: Mapped[str] = mapped_column(String(8), index=True, nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    is_one_time: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)  # None: never expires
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)  # None: not retired
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, server_default=func.now())

    __table_args__ = (
        # Digits stay reserved until the row is retired, expired or not.
        Index(
            "uq_chat_codes_unretired_code",
            "code",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    @classmethod
    def unretired_clause(cls):
        return cls.deleted_at.is_(None)

    @classmethod
    def active_clause(cls, now: datetime):
        """SQL predicate: not retired and not yet expired at ``now``."""
        return and_(
            cls.deleted_at.is_(None),
            or_(cls.expires_at.is_(None), cls.expires_at > now),
        )

    def is_active(self, now: datetime) -> bool:
        return self.deleted_at is None and (self.expires_at is None or self.expires_at > now)

    def __repr__(self):
        return f"<ChatCode(id={self.id}, code={self.code}, owner_id={self.owner_id})>"
