# guidant/services/gateway.py
"""
Razorpay boundary.

Order creation and every signature check go through the Razorpay SDK. Checkout
results reported by the student's client are verified against the key secret
(``order_id|payment_id``); gateway callbacks are verified against the webhook
secret over the raw request body.

With neither secret configured (local development) payment ids are taken as
reported. A webhook secret without a key secret means only the gateway may
confirm payments, so client-reported ids are refused.
"""

import logging
from typing import Any, Dict, Optional

import razorpay
import requests
from razorpay.errors import SignatureVerificationError

from guidant.config import settings
from guidant.exceptions import DependencyTimeoutError, PermissionDeniedError

logger = logging.getLogger(__name__)

PAYMENT_GATEWAY = "payment gateway"


def is_configured() -> bool:
    return bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET)


def get_client() -> razorpay.Client:
    return razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


def create_order(amount: int, currency: str, receipt: str) -> Optional[Dict[str, Any]]:
    """Gateway order for a checkout, or ``None`` when no keys are configured."""
    if not is_configured():
        return None
    try:
        return get_client().order.create(
            {"amount": amount, "currency": currency, "receipt": receipt},
            timeout=settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        )
    except (requests.Timeout, requests.ConnectionError) as exc:
        logger.error("Payment gateway unreachable while creating order %s: %s", receipt, exc)
        raise DependencyTimeoutError(PAYMENT_GATEWAY) from exc


def verify_checkout_signature(
    order_id: Optional[str],
    payment_id: str,
    signature: Optional[str],
) -> None:
    if not settings.RAZORPAY_KEY_SECRET:
        if settings.PAYMENT_WEBHOOK_SECRET:
            raise PermissionDeniedError(
                "Client-reported payments are disabled; the gateway confirms payments"
            )
        return
    if not order_id or not signature:
        raise PermissionDeniedError("Payment signature is required")

    try:
        verified = get_client().utility.verify_payment_signature({
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        })
    except SignatureVerificationError:
        verified = False
    if not verified:
        logger.warning("Rejected checkout result with bad signature (payment_id=%s)", payment_id)
        raise PermissionDeniedError("Invalid payment signature")


def verify_webhook_signature(raw_body: Optional[str], signature: Optional[str]) -> None:
    secret = settings.PAYMENT_WEBHOOK_SECRET
    if not secret:
        return
    if raw_body is None or not signature:
        raise PermissionDeniedError("Invalid payment callback signature")

    try:
        verified = get_client().utility.verify_webhook_signature(raw_body, signature, secret)
    except SignatureVerificationError:
        verified = False
    if not verified:
        logger.warning("Rejected payment callback with bad signature")
        raise PermissionDeniedError("Invalid payment callback signature")
