"""
Subscription models.

Records every verified payment for audit purposes.
"""
import uuid
from datetime import date
from sqlalchemy import String, Date
from sqlalchemy.orm import Mapped, mapped_column
from planpdf.models.base import Base, TimestampMixin


class Subscription(Base, TimestampMixin):
    """A paid plan period granted by a verified payment."""
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan_name: Mapped[str] = mapped_column(String(50), nullable=False)
    order_id: Mapped[str] = mapped_column(String(100), nullable=False)
    payment_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    plan_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    plan_expiry_date: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self):
        return f"<Subscription(user_id={self.user_id}, payment_id={self.payment_id}, expiry={self.plan_expiry_date})>"
