"""
Rapyd payment gateway client and webhook handling.

Every request is signed:

    base64(hex(hmac_sha256(secret, method + path + salt + timestamp + access_key + secret + body)))

The body must be sent byte-for-byte as it was signed, so it is serialized
once with compact separators and posted as raw data.
"""
import base64
import hashlib
import hmac
import json
import logging
import secrets
import time
from typing import Any, Dict, Optional

import requests
from sqlalchemy.orm import Session, joinedload

from carpark.core.config import settings
from carpark.core.exceptions import Conflict, NotFound, ProviderNotConfigured, UpstreamFailure
from carpark.models.booking import Booking, BookingStatus
from carpark.models.payment import Payment, PaymentStatus
from carpark.services import app_settings
from carpark.services.lifecycle import transition
from carpark.utils.clock import utcnow

logger = logging.getLogger(__name__)

PROVIDER = "rapyd"


def _sign(method: str, path: str, salt: str, timestamp: str, body: str) -> str:
    to_sign = (
        method.lower() + path + salt + timestamp
        + settings.RAPYD_ACCESS_KEY + settings.RAPYD_SECRET_KEY + body
    )
    digest = hmac.new(
        settings.RAPYD_SECRET_KEY.encode(), to_sign.encode(), hashlib.sha256
    ).hexdigest()
    return base64.b64encode(digest.encode()).decode()


def verify_webhook_signature(
    method: str, path: str, salt: str, timestamp: str, body: str, signature: str
) -> bool:
    expected = _sign(method, path, salt, timestamp, body)
    return hmac.compare_digest(expected, signature or "")


class RapydClient:
    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        if not settings.rapyd_configured:
            raise ProviderNotConfigured(PROVIDER, "Payment system not configured")
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, body: Optional[dict] = None) -> Dict[str, Any]:
        body_str = json.dumps(body, separators=(",", ":")) if body is not None else ""
        salt = secrets.token_hex(6)
        timestamp = str(int(time.time()))
        headers = {
            "Content-Type": "application/json",
            "access_key": settings.RAPYD_ACCESS_KEY,
            "salt": salt,
            "timestamp": timestamp,
            "signature": _sign(method, path, salt, timestamp, body_str),
        }
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                data=body_str or None,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Rapyd %s %s failed: %s", method, path, e)
            raise UpstreamFailure(PROVIDER, "Payment gateway unreachable") from e

        status = payload.get("status") or {}
        if status.get("error_code") or not response.ok:
            logger.error("Rapyd %s %s error: %s", method, path, status)
            raise UpstreamFailure(PROVIDER, status.get("message") or "Payment gateway error")
        return payload.get("data") or {}

    def create_checkout(
        self,
        amount: int,
        reference: str,
        complete_url: str,
        error_url: str,
        description: Optional[str] = None,
        language: str = "en",
        metadata: Optional[dict] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "amount": amount,
            "currency": settings.PAYMENT_CURRENCY,
            "country": settings.PAYMENT_COUNTRY,
            "merchant_reference_id": reference,
            "complete_payment_url": complete_url,
            "error_payment_url": error_url,
            "cancel_checkout_url": error_url,
            "language": language,
            "expiration": int(time.time()) + settings.CHECKOUT_EXPIRATION_MINUTES * 60,
            "metadata": {**(metadata or {}), "booking_reference": reference},
            "payment_method_type_categories": ["card"],
        }
        if description:
            body["description"] = description
            body["custom_elements"] = {"display_description": True}
        return self._request("POST", "/v1/checkout", body)

    def get_checkout(self, checkout_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/checkout/{checkout_id}")

    def get_payment(self, payment_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v1/payments/{payment_id}")

    def refund_payment(
        self, payment_id: str, amount: Optional[int] = None, reason: Optional[str] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"payment": payment_id}
        if amount is not None:
            body["amount"] = amount
        if reason:
            body["reason"] = reason
        return self._request("POST", "/v1/refunds", body)


def get_rapyd_client(db: Session) -> RapydClient:
    """Client pointed at sandbox or production depending on the paymentTestMode switch."""
    test_mode = app_settings.get_setting(db, app_settings.PAYMENT_TEST_MODE)
    live = test_mode is False or test_mode == "false"
    return RapydClient(settings.RAPYD_PRODUCTION_URL if live else settings.RAPYD_SANDBOX_URL)


# ---------------------------------------------------------------------------
# Checkout / refund flows
# ---------------------------------------------------------------------------


def start_checkout(db: Session, client: RapydClient, booking: Booking, locale: str = "is") -> Dict[str, Any]:
    if booking.status != BookingStatus.PENDING:
        raise Conflict("Booking is not awaiting payment")
    if booking.payment is not None and booking.payment.status == PaymentStatus.COMPLETED:
        raise Conflict("Booking is already paid")

    base_url = settings.APP_URL.rstrip("/")
    lot_name = booking.lot.name_en if locale == "en" and booking.lot.name_en else booking.lot.name
    checkout = client.create_checkout(
        amount=booking.total_price,
        reference=booking.reference,
        complete_url=f"{base_url}/{locale}/booking/confirmation?ref={booking.reference}",
        error_url=f"{base_url}/{locale}/booking/payment-failed?ref={booking.reference}",
        description=f"{lot_name} - {booking.reference}",
        language="en" if locale == "en" else "is",
        metadata={"booking_id": str(booking.id)},
    )

    payment = booking.payment
    if payment is None:
        payment = Payment(booking_id=booking.id, amount=booking.total_price, provider=PROVIDER)
        db.add(payment)
    payment.amount = booking.total_price
    payment.currency = settings.PAYMENT_CURRENCY
    payment.status = PaymentStatus.PENDING
    payment.provider_ref = checkout.get("id")
    payment.provider_data = {"checkout_id": checkout.get("id")}
    db.commit()
    logger.info("Checkout %s created for booking %s", checkout.get("id"), booking.reference)
    return {
        "checkout_id": checkout.get("id"),
        "redirect_url": checkout.get("redirect_url"),
        "booking_reference": booking.reference,
        "amount": booking.total_price,
        "currency": settings.PAYMENT_CURRENCY,
    }


def refund(
    db: Session,
    client: RapydClient,
    payment: Payment,
    amount: Optional[int] = None,
    reason: Optional[str] = None,
) -> Payment:
    """Refund a completed payment. A full refund also cancels the booking."""
    if payment.status != PaymentStatus.COMPLETED:
        raise Conflict("Only completed payments can be refunded")
    refund_amount = payment.amount if amount is None else amount
    if refund_amount <= 0 or refund_amount > payment.amount:
        raise Conflict("Refund amount must be between 1 and the paid amount")

    client.refund_payment(payment.provider_ref, refund_amount, reason)
    _apply_refund(payment, refund_amount)
    db.commit()
    logger.info("Refunded %s %s for booking %s", refund_amount, payment.currency, payment.booking.reference)
    return payment


def _apply_refund(payment: Payment, refund_amount: int) -> None:
    now = utcnow()
    full = refund_amount >= payment.amount
    payment.status = PaymentStatus.REFUNDED if full else PaymentStatus.PARTIALLY_REFUNDED
    payment.refund_amount = refund_amount
    payment.refunded_at = now
    booking = payment.booking
    if full and booking.status != BookingStatus.CANCELLED:
        if booking.status in (BookingStatus.CHECKED_OUT, BookingStatus.NO_SHOW):
            # Already finished, keep the history but record the refund
            return
        transition(booking, BookingStatus.CANCELLED, now)


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


def _booking_by_reference(db: Session, reference: Optional[str]) -> Optional[Booking]:
    if not reference:
        return None
    return (
        db.query(Booking)
        .options(joinedload(Booking.payment), joinedload(Booking.user), joinedload(Booking.lot))
        .filter(Booking.reference == reference)
        .first()
    )


def handle_webhook_event(db: Session, event: Dict[str, Any]) -> Optional[Booking]:
    """
    Apply a gateway event to the local payment mirror.

    Returns the booking that became CONFIRMED, if any, so the caller can
    send the confirmation email after the commit.
    """
    event_type = event.get("type")
    data = event.get("data") or {}
    logger.info("Rapyd webhook received: %s (%s)", event_type, event.get("id"))

    if event_type == "PAYMENT_COMPLETED":
        return _payment_completed(db, data)
    if event_type == "PAYMENT_FAILED":
        _payment_failed(db, data, PaymentStatus.FAILED)
    elif event_type in ("PAYMENT_EXPIRED", "PAYMENT_CANCELED"):
        _payment_failed(db, data, PaymentStatus.CANCELLED)
    elif event_type == "REFUND_COMPLETED":
        _refund_completed(db, data)
    else:
        logger.info("Unhandled webhook type: %s", event_type)
    return None


def _payment_completed(db: Session, data: dict) -> Optional[Booking]:
    booking = _booking_by_reference(db, data.get("merchant_reference_id"))
    if booking is None:
        logger.error("Booking not found for reference %s", data.get("merchant_reference_id"))
        return None

    payment = booking.payment
    if payment is None:
        payment = Payment(
            booking_id=booking.id,
            amount=int(round(data.get("amount") or booking.total_price)),
            currency=data.get("currency_code") or settings.PAYMENT_CURRENCY,
            provider=PROVIDER,
        )
        db.add(payment)
        booking.payment = payment
    payment.status = PaymentStatus.COMPLETED
    payment.provider_ref = data.get("id")
    payment.provider_data = data
    payment.paid_at = utcnow()

    confirmed = None
    if booking.status == BookingStatus.PENDING:
        transition(booking, BookingStatus.CONFIRMED)
        confirmed = booking
    else:
        logger.warning("Payment completed for booking %s in status %s", booking.reference, booking.status)
    db.commit()
    return confirmed


def _payment_failed(db: Session, data: dict, status: PaymentStatus) -> None:
    booking = _booking_by_reference(db, data.get("merchant_reference_id"))
    if booking is None or booking.payment is None:
        return
    # Booking stays PENDING so the customer can retry
    booking.payment.status = status
    booking.payment.provider_data = data
    db.commit()
    logger.info(
        "Payment %s for booking %s: %s",
        status.value, booking.reference, data.get("failure_message") or data.get("failure_code"),
    )


def _refund_completed(db: Session, data: dict) -> None:
    payment = db.query(Payment).filter(Payment.provider_ref == data.get("payment")).first()
    if payment is None:
        logger.error("Payment not found for refund of %s", data.get("payment"))
        return
    amount = int(round(data.get("amount") or 0))
    if amount <= 0:
        return
    # Refunds started from the admin are already applied locally
    if payment.refund_amount == amount and payment.status in (
        PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED
    ):
        return
    _apply_refund(payment, amount)
    db.commit()


def sync_payment_status(db: Session, client: RapydClient, booking: Booking) -> Payment:
    """Re-read the payment from the gateway (used by the status endpoint)."""
    payment = booking.payment
    if payment is None:
        raise NotFound("No payment for this booking")
    if payment.status != PaymentStatus.PENDING or not payment.provider_ref:
        return payment

    checkout = client.get_checkout(payment.provider_ref)
    remote = checkout.get("payment") or {}
    if remote.get("status") == "CLO":
        _payment_completed(db, {
            "id": remote.get("id"),
            "merchant_reference_id": booking.reference,
            "amount": remote.get("amount"),
            "currency_code": remote.get("currency_code"),
        })
        db.refresh(payment)
    return payment
