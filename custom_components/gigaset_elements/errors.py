"""
Exception taxonomy for the Gigaset Elements integration.

Remote failures (TransportError, RemoteRejected) are raised by the HTTP layer and
classified by the coordinator.  The remaining exceptions are raised by the
projection layer and the diagnostic message handler.
"""
from __future__ import annotations


class GigasetElementsError(Exception):
    """Base class for all integration errors."""


class TransportError(GigasetElementsError):
    """The Gigaset Elements cloud could not be reached (network level failure)."""


class RemoteRejected(GigasetElementsError):
    """The Gigaset Elements cloud answered with a non-success status."""

    def __init__(self, status_code: int, method: str, url: str, message: str = "") -> None:
        self.status_code = status_code
        self.method = method
        self.url = url
        super().__init__(message or f"HTTP {status_code}")

    @property
    def is_auth_expired(self) -> bool:
        return self.status_code == 401


class UnknownEnumValue(GigasetElementsError, ValueError):
    """A remote enumeration value could not be converted."""


class UnsupportedRecordShape(GigasetElementsError, TypeError):
    """A raw record matches none of the known record shapes."""


class UnsupportedCommand(GigasetElementsError):
    """A diagnostic message used an unknown command."""


class UnsupportedAction(GigasetElementsError):
    """A diagnostic message used an unknown action for a known command."""


class UndeclaredNode(GigasetElementsError, KeyError):
    """A value write targeted a state whose schema was never declared."""

    def __str__(self) -> str:
        return f"State not declared: {self.args[0]}" if self.args else "State not declared"


def describe_error(err: BaseException, prefix: str | None = None) -> str:
    """Return a human friendly message for log output."""
    if isinstance(err, TransportError):
        message = f"Error connecting to Gigaset Elements cloud: {err}"
    elif isinstance(err, RemoteRejected):
        message = f"Error from Gigaset Elements cloud: {err.status_code}, {err.method} {err.url} {err}"
    else:
        message = str(err) or type(err).__name__
    if prefix:
        message = f"{prefix}: {message}"
    return message
