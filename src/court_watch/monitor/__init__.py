"""Monitor module — change detection and subscriber notifications."""

from court_watch.monitor.detector import ChangeDetector, CheckOutcome, TickReport
from court_watch.monitor.notify import Notification, Notifier, SmtpNotifier

__all__ = [
    "ChangeDetector",
    "CheckOutcome",
    "TickReport",
    "Notification",
    "Notifier",
    "SmtpNotifier",
]
