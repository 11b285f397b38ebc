from app.workers.tasks.notifications import (
    issue_order_tickets,
    send_artist_verification_email,
    send_order_confirmation,
    send_password_reset_email,
    send_welcome_email,
)

__all__ = [
    "issue_order_tickets",
    "send_artist_verification_email",
    "send_order_confirmation",
    "send_password_reset_email",
    "send_welcome_email",
]
