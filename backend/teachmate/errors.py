"""Service-layer error taxonomy.

Each error carries the HTTP status the API layer renders it with. They
subclass ValueError so callers that only care about "bad input" can keep
catching ValueError.
"""

import logging

logger = logging.getLogger(__name__)


class ServiceError(ValueError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(ServiceError):
    """A referenced entity does not exist."""

    status_code = 404


class StateConflictError(ServiceError):
    """The operation is not valid for the entity's current status."""

    status_code = 400


class ExternalDependencyError(ServiceError):
    """An LLM, vector search, video or voice provider call failed or returned garbage."""

    status_code = 500


# ── Agent result convention ──────────────────────────────────────────────────
# Agents never raise: they return {"success": True, ...} or a failure dict
# built here. Callers check "success".

def failure(exc: Exception) -> dict:
    return {
        "success": False,
        "error": str(exc),
        "status_code": getattr(exc, "status_code", 500),
    }


def raise_for_result(result: dict, public_message: str) -> dict:
    """Turn a failed agent result back into a ServiceError.

    Provider failures surface as ``public_message``; the raw error text is
    only logged.
    """
    if result.get("success"):
        return result
    status_code = result.get("status_code", 500)
    if status_code >= 500:
        logger.error("%s: %s", public_message, result.get("error"))
        raise ExternalDependencyError(public_message)
    error = ServiceError(result.get("error") or public_message)
    error.status_code = status_code
    raise error
