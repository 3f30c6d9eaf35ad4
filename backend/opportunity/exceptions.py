"""
Typed failures raised by the service layer.

Every public service operation either returns its result or raises one of
these; the HTTP layer maps them to status codes and envelopes in
opportunity.api.errors.
"""
from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all service-layer failures."""
    code = "error"
    status_code = 400
    # Infrastructure failures show a generic message instead of `message`
    user_facing = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(PipelineError):
    """Requested resource does not exist."""
    code = "not_found"
    status_code = 404


class ForbiddenError(PipelineError):
    """Resource exists but belongs to another user."""
    code = "forbidden"
    status_code = 403


class ValidationError(PipelineError):
    """Malformed or out-of-enum input."""
    code = "validation_error"
    status_code = 422


class DuplicateApplicationError(PipelineError):
    """An application already exists for this (user, job) pair."""
    code = "duplicate_application"
    status_code = 409


class AuthenticationError(PipelineError):
    """Missing, expired or tampered session."""
    code = "not_authenticated"
    status_code = 401


class ProvisioningFailedError(PipelineError):
    """Profile creation failed for a reason other than a duplicate race."""
    code = "provisioning_failed"
    status_code = 500
    user_facing = False

    def __init__(self, message: str, cause: Optional[BaseException] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.cause = cause


class AuditWriteFailedError(PipelineError):
    """The audit append failed; the enclosing operation is failed with it."""
    code = "audit_write_failed"
    status_code = 500
    user_facing = False

    def __init__(self, message: str, cause: Optional[BaseException] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.cause = cause
