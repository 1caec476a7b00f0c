"""Recording merchant notifier for development and testing.

Can be configured to fail so tests can prove that notification errors
never roll back order creation.
"""

from ordering.notification.port import MerchantNotifier


class FakeMerchantNotifier(MerchantNotifier):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Notification channel unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Notification channel unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify_merchant(self, merchant_id: str, order_summary: dict) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.calls.append({"merchant_id": merchant_id, "order_summary": order_summary})
