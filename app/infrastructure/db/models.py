"""
SQLAlchemy ORM models
"""
import uuid
from datetime import datetime, timezone, date as date_type
from sqlalchemy import Integer, Text, TIMESTAMP, Date, Uuid, func, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.db.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriptionModel(Base):
    """
    Recurring subscription of a user to an online service.

    start_date / end_date are always stored month-aligned (day = 1);
    end_date NULL means the subscription is still active.
    """
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # smallest currency unit per month
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)  # opaque, no users table

    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)  # inclusive month

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow,
        server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_service_user", "service_name", "user_id"),
        Index("idx_start_end", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} service={self.service_name!r} price={self.price}>"
