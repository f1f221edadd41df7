"""
Profile service: plan tiers, roles and subscription upgrades.
"""
import calendar
from datetime import date
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from planpdf.errors import PaymentAlreadyUsed
from planpdf.models.profile import Profile, UserRole, PlanTier, PlanStatus
from planpdf.models.subscription import Subscription


def add_one_month(start: date) -> date:
    """Same day next month, clamped to the last day of a shorter month."""
    year = start.year + (1 if start.month == 12 else 0)
    month = 1 if start.month == 12 else start.month + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def effective_tier(profile: Profile | None, today: date | None = None) -> PlanTier:
    """PRO only for an active, unexpired paid plan."""
    if profile is not None and profile.has_active_paid_plan(today or date.today()):
        return PlanTier.PRO
    return PlanTier.FREE


class ProfileService:
    """Service for reading and upgrading user profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: str) -> Profile | None:
        """
        Get profile for a user.

        Args:
            user_id: Subject claim of the bearer token

        Returns:
            Profile or None if the user never got one
        """
        stmt = select(Profile).where(Profile.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_subscription(self, payment_id: str) -> Subscription | None:
        stmt = select(Subscription).where(Subscription.payment_id == payment_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upgrade_to_pro(
        self,
        user_id: str,
        email: str | None,
        order_id: str,
        payment_id: str,
        today: date | None = None
    ) -> Profile | None:
        """
        Grant one month of PRO and record the subscription.

        Each payment_id upgrades exactly once. Verifying it again as the
        same user changes nothing and returns None.

        Returns:
            Updated Profile, or None if this payment was already applied

        Raises:
            PaymentAlreadyUsed: if the payment belongs to another user
        """
        existing = await self.get_subscription(payment_id)
        if existing is not None:
            return self._already_applied(existing, user_id)

        start = today or date.today()
        expiry = add_one_month(start)

        profile = await self.get_by_user_id(user_id)
        if profile is None:
            profile = Profile(user_id=user_id, email=email)
            self.db.add(profile)

        profile.plan = PlanTier.PRO
        profile.plan_status = PlanStatus.ACTIVE
        profile.plan_expiry = expiry
        if profile.role != UserRole.ADMIN:
            profile.role = UserRole.SUBSCRIBED_USER

        self.db.add(Subscription(
            user_id=user_id,
            email=email,
            plan_name="Pro",
            order_id=order_id,
            payment_id=payment_id,
            plan_start_date=start,
            plan_expiry_date=expiry
        ))

        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent verify recorded the same payment first
            await self.db.rollback()
            existing = await self.get_subscription(payment_id)
            if existing is None:
                raise
            return self._already_applied(existing, user_id)

        await self.db.refresh(profile)
        return profile

    @staticmethod
    def _already_applied(subscription: Subscription, user_id: str) -> None:
        if subscription.user_id != user_id:
            raise PaymentAlreadyUsed(f"Payment {subscription.payment_id} was already used")
        return None

    async def count_by_role(self) -> dict[str, int]:
        """
        Count users for the admin dashboard.

        Returns:
            {"free": n, "subscribed": n, "admin": n}
        """
        stmt = select(Profile.role, func.count()).group_by(Profile.role)
        result = await self.db.execute(stmt)
        counts: dict[UserRole, int] = {}
        # Unknown stored roles load as USER, so several rows can share a key
        for role, count in result.all():
            counts[role] = counts.get(role, 0) + count
        return {
            "free": counts.get(UserRole.USER, 0),
            "subscribed": counts.get(UserRole.SUBSCRIBED_USER, 0),
            "admin": counts.get(UserRole.ADMIN, 0),
        }
