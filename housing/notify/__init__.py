from .base import LoggingNotifier, NotificationError, Notifier
from .twilio_sms import TwilioSmsNotifier

__all__ = [
    "LoggingNotifier",
    "NotificationError",
    "Notifier",
    "TwilioSmsNotifier",
]
