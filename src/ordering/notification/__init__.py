"""Merchant notifier factory.

Provides get_notifier() / set_notifier() to swap implementations:
- FakeMerchantNotifier for development and testing
- an email/SMS adapter in production
"""

from ordering.notification.fake_adapter import FakeMerchantNotifier
from ordering.notification.port import MerchantNotifier

_current_notifier: MerchantNotifier | None = None


def get_notifier() -> MerchantNotifier:
    """Return the current notifier. Defaults to FakeMerchantNotifier."""
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = FakeMerchantNotifier()
    return _current_notifier


def set_notifier(notifier: MerchantNotifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    """Reset to default notifier."""
    global _current_notifier
    _current_notifier = None
