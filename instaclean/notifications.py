import logging

from flask import current_app
from flask_mail import Message

from instaclean import mail
from instaclean.utils import format_price

logger = logging.getLogger("instaclean.notifications")


def _booking_summary(booking) -> str:
    contact = booking.user.name if booking.user else booking.guest_name
    return (
        f"Booking number: {booking.booking_number}\n"
        f"Customer: {contact}\n"
        f"Service: {booking.service.name}\n"
        f"Property: {booking.property_type.name} {booking.property_size or ''}\n"
        f"Date: {booking.scheduled_date.isoformat()} at {booking.scheduled_time}\n"
        f"Address: {booking.address}, {booking.city}, {booking.state}\n"
        f"Estimated price: {format_price(booking.estimated_price)}\n"
    )


def notify_booking_created(booking) -> int:
    """E-mail the office, and the customer when they asked to be contacted by e-mail.

    Returns the number of messages sent. Mail failures are logged and never
    abort the booking.
    """
    sender = current_app.config.get("MAIL_DEFAULT_SENDER")
    if not sender:
        logger.debug("MAIL_DEFAULT_SENDER not configured, skipping notifications")
        return 0

    messages = [Message(
        f"New booking {booking.booking_number}",
        sender=sender,
        recipients=[sender],
        body="New booking received:\n\n" + _booking_summary(booking),
    )]
    customer_email = booking.contact_email
    if booking.contact_method == "EMAIL" and customer_email:
        messages.append(Message(
            f"Your cleaning is booked ({booking.booking_number})",
            sender=sender,
            recipients=[customer_email],
            body=("Thank you for your booking! We will contact you shortly to confirm.\n\n"
                  + _booking_summary(booking)),
        ))

    sent = 0
    for msg in messages:
        try:
            mail.send(msg)
            sent += 1
        except Exception:
            logger.exception("Could not send '%s' to %s", msg.subject, ", ".join(msg.recipients))
    return sent
