"""Notification reporters for catalog backup."""

from .notifier import LogOnlyNotifier, Notifier, SendEmailNotifier, create_notifier

__all__ = ["Notifier", "SendEmailNotifier", "LogOnlyNotifier", "create_notifier"]
