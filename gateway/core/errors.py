"""
Error taxonomy for the gateway.

- ValidationError: request rejected before any provider call
- DispatchError: provider call attempted and failed
- LedgerError: reward publishing failed (never reaches the caller)
"""


class GatewayError(Exception):
    """Base class; str(exc) is the caller-visible message."""


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


class ValidationError(GatewayError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class MissingField(ValidationError):
    def __init__(self, field: str, label: str):
        super().__init__(f"{label} ({field}) is required", field=field)


class InvalidFormat(ValidationError):
    pass


class InvalidLength(ValidationError):
    def __init__(self, field: str, label: str, minimum: int, maximum: int, too_long: bool):
        if too_long:
            message = f"{label} must not exceed {maximum} characters"
        else:
            message = f"{label} must be at least {minimum} characters long"
        super().__init__(message, field=field)
        self.minimum = minimum
        self.maximum = maximum
        self.too_long = too_long


class InvalidChannel(ValidationError):
    def __init__(self, channel, valid: list[str]):
        super().__init__(f"Invalid channel. Must be one of: {', '.join(valid)}", field="channel")
        self.channel = channel
        self.valid = valid


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------


class DispatchError(GatewayError):
    def __init__(self, message: str, channel: str | None = None):
        super().__init__(message)
        self.channel = channel


class ProviderRejected(DispatchError):
    pass


class ProviderTimeout(DispatchError):
    pass


class ProviderMalformedResponse(DispatchError):
    pass


class ProviderUnavailable(DispatchError):
    """Transport failure, or the provider has no credentials configured."""


# ------------------------------------------------------------------
# Ledger
# ------------------------------------------------------------------


class LedgerError(GatewayError):
    pass


class LedgerUnreachable(LedgerError):
    pass


class LedgerRejected(LedgerError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
