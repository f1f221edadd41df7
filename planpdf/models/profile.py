"""
Profile model.

Holds the plan tier and role of a user. Identity itself lives with the
identity provider; user_id is its subject claim.
"""
import enum
from datetime import date
from sqlalchemy import String, Date
from sqlalchemy.orm import Mapped, mapped_column
from planpdf.models.base import Base, TimestampMixin, enum_column


class UserRole(str, enum.Enum):
    """User role enum for role-based access control."""
    USER = "user"
    SUBSCRIBED_USER = "subscribed_user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | None) -> "UserRole":
        """Unknown roles get no privileges."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.USER


class PlanTier(str, enum.Enum):
    """Subscription plan tier."""
    FREE = "free"
    PRO = "pro"

    @classmethod
    def parse(cls, value: str | None) -> "PlanTier":
        """Anything that is not a known paid tier is FREE."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.FREE


class PlanStatus(str, enum.Enum):
    FREE = "free"
    ACTIVE = "active"

    @classmethod
    def parse(cls, value: str | None) -> "PlanStatus":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.FREE


class Profile(Base, TimestampMixin):
    """
    User profile with plan and role.

    A user without a profile row is treated as a free user.
    """
    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole, parse=UserRole.parse),
        nullable=False,
        default=UserRole.USER
    )
    plan: Mapped[PlanTier] = mapped_column(
        enum_column(PlanTier, parse=PlanTier.parse),
        nullable=False,
        default=PlanTier.FREE
    )
    plan_status: Mapped[PlanStatus] = mapped_column(
        enum_column(PlanStatus, parse=PlanStatus.parse),
        nullable=False,
        default=PlanStatus.FREE
    )
    plan_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)

    def has_active_paid_plan(self, today: date) -> bool:
        """True when on a paid tier whose expiry (if any) has not passed."""
        if self.plan != PlanTier.PRO:
            return False
        return self.plan_expiry is None or self.plan_expiry >= today

    def __repr__(self):
        return f"<Profile(user_id={self.user_id}, plan={self.plan}, role={self.role})>"
