"""Faucet Errors — exceptions for faults the engine cannot express as a ClaimResult.

Invariants:
    - Claim rejections are NOT exceptions: every expected outcome of a claim is a
      ClaimResult with a reason code; what lands here is infrastructure failure,
      a lost race, or a malformed lookup
    - Each subclass fixes its own code, category, severity and HTTP status
    - `retryable` is true exactly when repeating the same request can succeed
      unchanged (database outage, relay outage, lost race)
    - to_response() never includes driver messages or stack detail

Design Decisions:
    - Class attributes over constructor arguments: a DatabaseError is always
      DATABASE_ERROR/503, callers only supply the message and context
    - DisbursementError carries `failure_type` (timeout, connection_error,
      client_error, bad_response, transfer_failed, rate_limit) for logs only;
      the caller sees `disbursement_failed`
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar


class ErrorSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"


@dataclass
class ErrorContext:
    """Which wallet the failure concerns, and when the caller may try again."""
    address: str | None = None
    retry_after_ms: int | None = None
    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class FaucetError(Exception):
    code: ClassVar[str] = "FAUCET_ERROR"
    category: ClassVar[ErrorCategory] = ErrorCategory.DATABASE
    severity: ClassVar[ErrorSeverity] = ErrorSeverity.ERROR
    http_status: ClassVar[int] = 500
    public_message: ClassVar[str] = "The faucet could not process the request"

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def retryable(self) -> bool:
        return self.http_status in (409, 503)

    def to_response(self) -> dict:
        """REST error envelope; `message` is the fixed public text."""
        body = {
            "code": self.code,
            "message": self.public_message,
            "category": self.category.value,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "timestamp": self.context.occurred_at.isoformat(),
        }
        if self.context.address:
            body["address"] = self.context.address
        if self.context.retry_after_ms is not None:
            body["retryAfterMs"] = self.context.retry_after_ms
        return {"error": body}


# ─── Caller errors ───────────────────────────────────────────────

class AddressFormatError(FaucetError):
    """Wallet address is not 0x + 40 hex chars or fails its EIP-55 checksum."""
    code = "INVALID_ADDRESS"
    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.WARNING
    http_status = 400
    public_message = "Invalid wallet address format"

    def __init__(self, raw: str, context: ErrorContext | None = None):
        super().__init__(f"Malformed wallet address: {raw[:64]!r}", context)
        self.raw = raw


class ConcurrencyError(FaucetError):
    """Identity record changed between read and versioned write."""
    code = "CONCURRENCY_CONFLICT"
    category = ErrorCategory.CONFLICT
    severity = ErrorSeverity.WARNING
    http_status = 409
    public_message = "Request collided with another update, please retry"


# ─── Infrastructure errors ───────────────────────────────────────

class DatabaseError(FaucetError):
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503
    public_message = "Faucet storage is temporarily unavailable, please retry"

    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
    ):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation


class DisbursementError(FaucetError):
    """Transfer relay failed or answered with something unusable."""
    code = "DISBURSEMENT_ERROR"
    category = ErrorCategory.EXTERNAL_API
    severity = ErrorSeverity.ERROR
    http_status = 503
    public_message = "Token transfer failed, please retry"

    def __init__(
        self,
        message: str,
        failure_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        if retry_after_ms is not None:
            ctx.retry_after_ms = retry_after_ms
        super().__init__(f"Disbursement {failure_type}: {message}", ctx)
        self.failure_type = failure_type
