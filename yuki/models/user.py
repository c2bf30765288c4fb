from datetime import datetime
from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, validates

from yuki.core.addresses import normalize_address
from yuki.db.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    wallet_address: Mapped[str | None] = mapped_column(String(42), unique=True, index=True, nullable=True)

    # Display form keeps the leading "@" and the claimed casing
    username: Mapped[str | None] = mapped_column(String(32), nullable=True)
    username_normalized: Mapped[str | None] = mapped_column(String(32), unique=True, index=True, nullable=True)
    username_last_changed: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(160), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    banner_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @validates("wallet_address")
    def _normalize_wallet_address(self, key, value):
        if value is None:
            return None
        return normalize_address(value)
