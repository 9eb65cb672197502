"""Error kinds shared by every layer of the service.

Each error carries a stable machine-readable ``code`` and the HTTP status the
API answers with. The handler registered in ``app.main`` renders them as
``{"error": code, "detail": message}``.
"""

from typing import Any, Optional


class CarrierSalesError(Exception):
    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidArgument(CarrierSalesError, ValueError):
    """Malformed or out-of-domain input (non-positive rate, bad round, ...)."""

    code = "invalid_argument"
    status_code = 400


class NotFound(CarrierSalesError):
    """A referenced session, load, carrier or call has no record."""

    code = "not_found"
    status_code = 404


class StorageUnavailable(CarrierSalesError):
    """The database rejected or failed an operation.

    The underlying driver error is chained as ``__cause__`` and logged, never
    sent to the client.
    """

    code = "storage_unavailable"
    status_code = 500


class RegistryUnavailable(CarrierSalesError):
    """The FMCSA registry could not be reached or answered with an error."""

    code = "registry_unavailable"
    status_code = 502
