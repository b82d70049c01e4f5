"""Domain errors raised by monitoring operations.

Each error carries the HTTP status the API layer should answer with.
Probe failures and alert-channel failures are not raised; they are
recorded as ``down`` results or logged.
"""


class ServiceMonitorError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceMonitorError):
    """Request is missing fields or conflicts with existing data."""

    status_code = 400


class ServiceNotFoundError(ServiceMonitorError):
    status_code = 404

    def __init__(self, name: str):
        super().__init__("Service not found")
        self.name = name


class ChannelNotConfiguredError(ServiceMonitorError):
    """Channel is disabled or missing a required field."""

    status_code = 400


class UnknownChannelError(ServiceMonitorError):
    status_code = 404

    def __init__(self, channel: str):
        super().__init__(f"Unknown notification channel: {channel}")
        self.channel = channel


class NotificationError(ServiceMonitorError):
    """A channel provider rejected or failed a send."""

    status_code = 500
