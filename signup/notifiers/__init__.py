"""Verification code notifiers."""

from signup.notifiers.base import Notifier
from signup.notifiers.logging import CapturingNotifier, LoggingNotifier
from signup.notifiers.smtp import SmtpEmailNotifier

__all__ = ["CapturingNotifier", "LoggingNotifier", "Notifier", "SmtpEmailNotifier"]
