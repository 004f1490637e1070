from __future__ import annotations


class SubscriptionError(Exception):
    """Base for failures rendered as `{success: false, error: message}`."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SubscriptionError):
    status_code = 400


class NotFoundError(SubscriptionError):
    status_code = 404


class BusinessRuleError(SubscriptionError):
    status_code = 400
