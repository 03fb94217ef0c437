from dataclasses import asdict, dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class StatusInfo:
    message: str
    severity: Severity

    def to_dict(self) -> dict:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


PAYMENT_STATUS_INFO = MappingProxyType({
    "succeeded": StatusInfo("Payment completed successfully", Severity.SUCCESS),
    "processing": StatusInfo("Payment is being processed", Severity.INFO),
    "requires_payment_method": StatusInfo(
        "Payment failed - please try a different payment method", Severity.ERROR
    ),
    "requires_confirmation": StatusInfo("Payment requires additional confirmation", Severity.WARNING),
    "requires_action": StatusInfo(
        "Payment requires additional authentication (3D Secure)", Severity.WARNING
    ),
    "canceled": StatusInfo("Payment was canceled", Severity.ERROR),
    "requires_capture": StatusInfo("Payment authorized, awaiting capture", Severity.INFO),
})

# Only consulted when the intent is back in requires_payment_method
DECLINE_CODE_MESSAGES = MappingProxyType({
    "card_declined": "Your card was declined",
    "expired_card": "Your card has expired",
    "incorrect_cvc": "Your card's security code is incorrect",
    "processing_error": "An error occurred while processing your card",
    "incorrect_number": "Your card number is incorrect",
})


def classify_payment_status(status: str, decline_code: Optional[str] = None) -> StatusInfo:
    """Map a payment intent status (and optional decline code) to a customer-facing message."""
    info = PAYMENT_STATUS_INFO.get(status)
    if info is None:
        return StatusInfo(f"Unknown payment status: {status}", Severity.WARNING)

    if status == "requires_payment_method" and decline_code in DECLINE_CODE_MESSAGES:
        return StatusInfo(DECLINE_CODE_MESSAGES[decline_code], info.severity)

    return info
