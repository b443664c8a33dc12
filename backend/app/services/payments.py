"""
Payment deep links.

The portal never processes payments — it links out to Venmo and PayPal.
Handles come from settings only: they are not stored on projects and no
API payload can change them.
"""

import secrets

from app.core.config import settings
from app.schemas.projects import PaymentLinks


def payment_links() -> PaymentLinks:
    """Venmo/PayPal handles and URLs for the configured business account."""
    return PaymentLinks(
        venmo_handle=settings.VENMO_HANDLE,
        paypal_handle=settings.PAYPAL_HANDLE,
        venmo_url=f"https://account.venmo.com/u/{settings.VENMO_HANDLE}",
        paypal_url=f"https://www.paypal.com/paypalme/{settings.PAYPAL_HANDLE}",
    )


def pin_matches(expected: str | None, supplied: str) -> bool:
    """Constant-time PIN comparison. A project without a PIN matches nothing."""
    if not expected:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
