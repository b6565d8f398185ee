# src/kubetune/core/exceptions.py
from typing import Optional


class KubeTuneError(Exception):
    """Base exception for kubetune."""

    pass


class InvalidWindowError(KubeTuneError):
    """Raised when the requested time bounds are malformed or inconsistent."""

    pass


class MissingScopeError(KubeTuneError):
    """Raised when a required scope identifier (cluster, deployment) is absent."""

    pass


class MissingCredentialsError(KubeTuneError):
    """Raised when the Datadog API or application key is not configured."""

    pass


class ProviderQueryError(KubeTuneError):
    """Raised when a single Datadog query does not return a success status."""

    def __init__(self, name: str, status: Optional[int], body: str, query: Optional[str] = None):
        self.name = name
        self.status = status
        self.body = body
        self.query = query
        status_str = status if status is not None else "no response"
        super().__init__(f"Datadog query '{name}' failed ({status_str}) for \"{query or name}\": {body}")
