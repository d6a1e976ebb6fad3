"""
Transactional booking emails over SMTP.

Every sender returns True/False instead of raising: an email failure must
never undo a booking state change that is already committed.
"""
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from carpark.core.config import settings
from carpark.models.booking import Booking

logger = logging.getLogger(__name__)

SUBJECTS = {
    "confirmation": {"is": "Bókun staðfest - {ref}", "en": "Booking Confirmed - {ref}"},
    "cancellation": {"is": "Bókun afturkölluð - {ref}", "en": "Booking Cancelled - {ref}"},
    "reminder": {"is": "Áminning: Bókun á morgun - {ref}", "en": "Reminder: Booking Tomorrow - {ref}"},
    "check_in": {"is": "Innritun staðfest - {ref}", "en": "Check-in Confirmed - {ref}"},
}

INTROS = {
    "confirmation": {
        "is": "Takk fyrir bókunina. Hér eru upplýsingarnar þínar.",
        "en": "Thank you for your booking. Here are your details.",
    },
    "cancellation": {
        "is": "Bókun þín hefur verið afturkölluð.",
        "en": "Your booking has been cancelled.",
    },
    "reminder": {
        "is": "Við minnum á bókunina þína á morgun.",
        "en": "A reminder that your booking starts tomorrow.",
    },
    "check_in": {
        "is": "Bíllinn þinn er kominn í okkar hendur.",
        "en": "Your car has been checked in.",
    },
}

LABELS = {
    "is": {"reference": "Bókunarnúmer", "vehicle": "Bíll", "lot": "Bílastæði",
           "drop_off": "Koma", "pick_up": "Sækja", "total": "Heildarverð"},
    "en": {"reference": "Booking Reference", "vehicle": "Vehicle", "lot": "Parking Lot",
           "drop_off": "Drop-off", "pick_up": "Pick-up", "total": "Total Price"},
}


def format_price(amount: int, locale: str) -> str:
    # Icelandic uses '.' as thousands separator
    text = f"{amount:,}"
    if locale == "is":
        text = text.replace(",", ".")
    return f"{text} kr."


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def recipient_for(booking: Booking) -> Optional[str]:
    if booking.guest_email:
        return booking.guest_email
    return booking.user.email if booking.user else None


def locale_for(booking: Booking) -> str:
    return "en" if booking.user is not None and booking.user.locale == "en" else "is"


def render_booking_email(kind: str, booking: Booking, locale: str) -> EmailMessage:
    labels = LABELS[locale]
    lot_name = booking.lot.name_en if locale == "en" and booking.lot.name_en else booking.lot.name
    lines = [
        INTROS[kind][locale],
        "",
        f"{labels['reference']}: {booking.reference}",
        f"{labels['vehicle']}: {booking.vehicle.license_plate if booking.vehicle else '-'}",
        f"{labels['lot']}: {lot_name}",
        f"{labels['drop_off']}: {format_datetime(booking.drop_off_time)}",
        f"{labels['pick_up']}: {format_datetime(booking.pick_up_time)}",
        f"{labels['total']}: {format_price(booking.total_price, locale)}",
    ]
    instructions = booking.lot.instructions_en if locale == "en" else booking.lot.instructions
    if kind in ("confirmation", "reminder") and instructions:
        lines += ["", instructions]
    lines += ["", f"{settings.APP_URL.rstrip('/')}/{locale}/bookings/{booking.reference}"]

    message = EmailMessage()
    message["Subject"] = SUBJECTS[kind][locale].format(ref=booking.reference)
    message["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM))
    message.set_content("\n".join(lines))
    return message


def send_message(message: EmailMessage, to: str) -> bool:
    if not settings.smtp_configured:
        logger.warning("SMTP not configured, not sending '%s'", message["Subject"])
        return False
    message["To"] = to
    try:
        if settings.SMTP_PORT == 465:
            smtp = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.HTTP_TIMEOUT_SECONDS)
        else:
            smtp = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.HTTP_TIMEOUT_SECONDS)
        with smtp:
            if settings.SMTP_PORT != 465:
                smtp.starttls()
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send '%s' to %s: %s", message["Subject"], to, e)
        return False
    logger.info("Sent '%s' to %s", message["Subject"], to)
    return True


def send_booking_email(kind: str, booking: Booking, locale: Optional[str] = None) -> bool:
    to = recipient_for(booking)
    if not to:
        logger.warning("Booking %s has no email address", booking.reference)
        return False
    return send_message(render_booking_email(kind, booking, locale or locale_for(booking)), to)


def send_booking_confirmation(booking: Booking, locale: Optional[str] = None) -> bool:
    return send_booking_email("confirmation", booking, locale)


def send_booking_cancellation(booking: Booking, locale: Optional[str] = None) -> bool:
    return send_booking_email("cancellation", booking, locale)


def send_booking_reminder(booking: Booking, locale: Optional[str] = None) -> bool:
    return send_booking_email("reminder", booking, locale)


def send_check_in_confirmation(booking: Booking, locale: Optional[str] = None) -> bool:
    return send_booking_email("check_in", booking, locale)


def send_test_email(to: str, locale: str = "is") -> bool:
    message = EmailMessage()
    message["Subject"] = "Prófunarpóstur - CarPark" if locale == "is" else "Test Email - CarPark"
    message["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM))
    message.set_content(
        "Þetta er prófunarpóstur." if locale == "is" else "This is a test email."
    )
    return send_message(message, to)
