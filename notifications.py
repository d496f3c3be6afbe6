from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

from models import AppSettings, Reservation
from zone_time import to_local

logger = logging.getLogger(__name__)


class EmailNotifier:
    """
    Sends the admin a notice for each new reservation.

    Runs after the response has been sent. Failures are logged and dropped:
    the reservation already exists and stays as it is.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        sender: str = "",
        timeout: float = 10.0,
        from_name: str = "Reservas",
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.sender = sender or user
        self.timeout = timeout
        self.from_name = from_name

    def build_message(self, reservation: Reservation, to_email: str) -> EmailMessage:
        start = to_local(reservation.start_utc, reservation.time_zone)
        end = to_local(reservation.end_utc, reservation.time_zone)

        msg = EmailMessage()
        msg["Subject"] = f"New reservation {reservation.calendar_date} {reservation.local_start_time}"
        msg["From"] = f"{self.from_name} <{self.sender}>"
        msg["To"] = to_email
        msg.set_content(
            "\n".join(
                [
                    "A new reservation has been created.",
                    "",
                    f"Resource: {reservation.resource_id}",
                    f"Date: {reservation.calendar_date}",
                    f"Time: {start:%H:%M} - {end:%H:%M} ({reservation.time_zone})",
                    f"Service: {reservation.service_label}",
                    f"Name: {reservation.customer_name}",
                    f"Phone: {reservation.customer_phone or '-'}",
                    f"Email: {reservation.customer_email or '-'}",
                    f"Reference: {reservation.reservation_id}",
                ]
            )
        )
        return msg

    def _missing_config(self, settings: AppSettings) -> Optional[str]:
        if not settings.admin_email:
            return "no admin email configured"
        if not (self.host and self.user and settings.smtp_password):
            return "SMTP not configured"
        return None

    def notify_reservation_created(self, reservation: Reservation, settings: AppSettings) -> bool:
        reason = self._missing_config(settings)
        if reason:
            logger.info("Skipping notification for %s: %s", reservation.reservation_id, reason)
            return False

        try:
            msg = self.build_message(reservation, settings.admin_email)
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                server.login(self.user, settings.smtp_password)
                server.send_message(msg)
        except Exception:
            logger.exception("Failed to send notification for reservation %s", reservation.reservation_id)
            return False

        logger.info("Notification sent for reservation %s", reservation.reservation_id)
        return True
