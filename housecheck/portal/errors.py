from __future__ import annotations

from typing import Optional


class PortalError(Exception):
    """Base class for every failure a view reports to its caller."""


class FormValidationError(PortalError):
    """A required form field is missing; nothing was sent to the backend."""


class AuthenticationError(PortalError):
    """No signed-in identity where one is required."""


class NotFoundError(PortalError):
    """A house or inspection does not exist or belongs to someone else."""


class UploadInProgressError(PortalError):
    pass


class BackendError(PortalError):
    """A backend call failed (HTTP error status or network failure)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
