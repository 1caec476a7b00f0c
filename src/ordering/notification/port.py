"""Merchant notifier port.

Delivery (email, SMS, dashboard push) is outside the ordering core. A
notifier is best-effort: dispatch failures are logged and never undo the
order change that triggered them.
"""

from abc import ABC, abstractmethod


class MerchantNotifier(ABC):
    @abstractmethod
    def notify_merchant(self, merchant_id: str, order_summary: dict) -> None:
        """Tell a merchant about a new (or changed) sub-order."""
        ...
