"""Mapping of ingestion failures to client-facing error bodies.

Validation failures expose their messages as details; every other failure
becomes an opaque "unexpected error" so no internals leak to the caller.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field

from bank_ledger.ingestion.errors import TransactionValidationError
from bank_ledger.lib.logging_config import get_logger

logger = get_logger("api_error")

VALIDATION_MESSAGE = "Validation failed"
UNEXPECTED_MESSAGE = "Unexpected server error"


@dataclass(frozen=True)
class ApiError:
    """Error body returned to the caller.

    Attributes:
        message: Human-readable summary.
        details: Individual error messages; empty for unexpected errors.
    """

    message: str
    details: list[str] = field(default_factory=list)

    @classmethod
    def validation(cls, details: list[str]) -> ApiError:
        return cls(message=VALIDATION_MESSAGE, details=list(details))

    @classmethod
    def unexpected(cls) -> ApiError:
        return cls(message=UNEXPECTED_MESSAGE)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize the error body to a JSON string."""
        return json.dumps(self.to_dict(), indent=2)


def map_exception(exc: BaseException) -> tuple[ApiError, bool]:
    """Translate an exception into an error body.

    Args:
        exc: The failure raised while handling a request.

    Returns:
        Tuple of (error body, True if the caller is at fault).
    """
    if isinstance(exc, TransactionValidationError):
        logger.warning("Request rejected: %s", exc)
        return ApiError.validation(exc.errors or [str(exc)]), True

    logger.error("Unexpected failure", exc_info=exc)
    return ApiError.unexpected(), False
