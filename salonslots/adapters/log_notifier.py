"""
Notifier that records booking events in the application log.

Stands in for e-mail delivery, which lives outside this package.
"""

import logging

from ..domain.models import Appointment

logger = logging.getLogger(__name__)


class LogNotifier:
    """One-shot notifier writing a single log line per event."""

    def __init__(self, timezone: str = "Europe/Berlin"):
        self.timezone = timezone

    async def notify(self, event: str, appointment: Appointment) -> None:
        local_start = appointment.start_time.in_timezone(self.timezone)
        logger.info(
            "%s: %s <%s> with staff %s on %s (code %s)",
            event,
            appointment.client_name or "guest",
            appointment.client_email or "-",
            appointment.staff_id,
            local_start.format("DD.MM.YYYY HH:mm"),
            appointment.confirmation_code or "-",
        )
