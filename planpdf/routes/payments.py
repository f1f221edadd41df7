"""
Payment API routes.

Creates gateway orders and upgrades the caller's plan once a checkout
signature has been verified.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from planpdf.config import settings
from planpdf.database import get_db
from planpdf.dependencies.auth import get_current_user, TokenPayload
from planpdf.errors import PaymentAlreadyUsed, PaymentGatewayError
from planpdf.logging_config import get_logger
from planpdf.routes.metrics import track_payment_verification
from planpdf.services.payment_service import PaymentService
from planpdf.services.profile_service import ProfileService


router = APIRouter(prefix="/api/payments", tags=["payments"])


class CreateOrderRequest(BaseModel):
    """Request model for creating an order."""
    amount: float = Field(gt=0)
    currency: str = "INR"
    receipt: str | None = None


class VerifyPaymentRequest(BaseModel):
    """Checkout result; accepts both plain and gateway-prefixed names."""
    order_id: str | None = Field(
        default=None, validation_alias=AliasChoices("order_id", "razorpay_order_id")
    )
    payment_id: str | None = Field(
        default=None, validation_alias=AliasChoices("payment_id", "razorpay_payment_id")
    )
    signature: str | None = Field(
        default=None, validation_alias=AliasChoices("signature", "razorpay_signature")
    )


def get_payment_service() -> PaymentService:
    return PaymentService()


@router.post("/orders")
async def create_order(
    request: CreateOrderRequest,
    payments: PaymentService = Depends(get_payment_service)
):
    """Create a gateway order for checkout."""
    try:
        order = await payments.create_order(request.amount, request.currency, request.receipt)
    except PaymentGatewayError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {"success": True, "order": order, "key": settings.RAZORPAY_KEY_ID}


@router.post("/verify")
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    payments: PaymentService = Depends(get_payment_service)
):
    """
    Verify a checkout signature and upgrade the caller to PRO.

    A mismatched signature is reported as unverified and changes nothing.
    A payment already applied to another account is rejected with 409.
    """
    if not (request.order_id and request.payment_id and request.signature):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="order_id, payment_id and signature are required"
        )

    log = get_logger(user_id=current_user.sub, order_id=request.order_id)

    verified = payments.verify_signature(request.order_id, request.payment_id, request.signature)
    track_payment_verification(verified)
    if not verified:
        log.warning("payment_signature_mismatch")
        return {"success": True, "verified": False}

    try:
        profile = await ProfileService(db).upgrade_to_pro(
            user_id=current_user.sub,
            email=current_user.email,
            order_id=request.order_id,
            payment_id=request.payment_id
        )
    except PaymentAlreadyUsed:
        log.warning("payment_replay_rejected", payment_id=request.payment_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment already used")

    if profile is None:
        log.info("payment_already_applied", payment_id=request.payment_id)
    else:
        log.info("payment_verified", plan_expiry=profile.plan_expiry.isoformat())

    return {"success": True, "verified": True, "payment_id": request.payment_id}
