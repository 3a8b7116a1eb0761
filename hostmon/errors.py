"""
hostmon error types.

Transport failures from the HTTP client (httpx.HTTPError) are not wrapped
and reach callers unmodified.
"""


class ConfigError(Exception):
    """Configuration is missing or invalid."""


class StorageError(Exception):
    """InfluxDB answered the request but reported an error in the body."""


class NotFoundError(Exception):
    """No series matched a host / metric type combination."""

    def __init__(self, metric_type: str, host: str = None):
        self.metric_type = metric_type
        self.host = host
        if host is None:
            message = f"Measurement type ({metric_type}) not found."
        else:
            message = f"Host ({host}) or measurement type ({metric_type}) not found."
        super().__init__(message)
