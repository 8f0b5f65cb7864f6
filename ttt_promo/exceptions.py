class InvalidPayloadError(ValueError):
    """The reported result or its eventId failed validation."""


class LedgerExhaustedError(RuntimeError):
    """No unused promo code could be drawn within the attempt bound."""


class NotificationDeliveryError(RuntimeError):
    """Telegram refused or failed to deliver a message."""


class SessionResolutionError(Exception):
    """The caller's session identity could not be established."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
