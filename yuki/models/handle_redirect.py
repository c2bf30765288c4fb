from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from yuki.db.base import Base


class HandleRedirect(Base):
    """A handle a user gave up; resolves to that user's current handle."""

    __tablename__ = "handle_redirects"

    id: Mapped[int] = mapped_column(primary_key=True)
    old_handle: Mapped[str] = mapped_column(String(32), nullable=False)
    old_handle_normalized: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
