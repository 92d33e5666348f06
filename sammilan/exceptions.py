"""Domain errors raised by the donation services.

Route handlers map these onto HTTP status codes; workers log them.
"""


class DonationError(Exception):
    """Base class for donation processing errors."""

    status_code = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context


class DonationValidationError(DonationError):
    """Bad amount, missing donor fields or a malformed payload."""

    status_code = 400


class SignatureVerificationError(DonationError):
    """HMAC signature did not match."""

    status_code = 400


class DonationNotFoundError(DonationError):
    """No donation for the referenced order."""

    status_code = 404


class GatewayError(DonationError):
    """Razorpay call failed or timed out. Safe to retry later."""

    status_code = 500
