"""
Standardized error hierarchy for the FitPlay gamification engine
Provides rich context, consistent logging, and user-friendly error messages

Engine operations report expected business failures (unknown quest, bad
duration, duplicate completion) by *returning* one of these errors inside a
Result. Only corrupt configuration is raised.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Generic, Optional, TypeVar
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FitPlayError(Exception):
    """
    Base error for the gamification engine

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - Machine-readable kind
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        FitPlayError(
            message="Failed to award points",
            user_id="u-123",
            operation="log_activity",
            context={"activity_id": "a-1"}
        )
    """

    kind = "error"
    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_kind": self.kind,
            "error_message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error for API responses"""
        return {
            "error": self.__class__.__name__,
            "kind": self.kind,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Business Errors (returned, not raised)
# ==========================================

class ValidationError(FitPlayError):
    """
    Input failed validation

    Examples:
    - Non-positive duration
    - Unknown activity type or intensity
    - Quest completed with the wrong activity type

    Example:
        ValidationError(
            message="Duration must be positive",
            field="duration_minutes",
            value=0,
            user_id="u-123"
        )
    """

    kind = "validation"
    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


class NotFoundError(FitPlayError):
    """Referenced quest, badge, challenge, profile or activity does not exist"""

    kind = "not_found"
    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[Any] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class DuplicateCompletionError(FitPlayError):
    """Quest already completed by this user on this calendar day"""

    kind = "duplicate_completion"
    log_level = logging.INFO

    def __init__(
        self,
        message: str,
        quest_id: Optional[Any] = None,
        completion_date: Optional[date] = None,
        **kwargs
    ):
        self.quest_id = quest_id
        self.completion_date = completion_date
        super().__init__(
            message=message,
            user_message="You already completed this quest today. Come back tomorrow!",
            context={
                "quest_id": quest_id,
                "date": completion_date.isoformat() if completion_date else None
            },
            **kwargs
        )


class ConflictError(FitPlayError):
    """Profile changed between read and write; the caller retries"""

    kind = "conflict"
    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
        **kwargs
    ):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            message=message,
            user_message="Your profile was updated elsewhere. Please try again.",
            context={
                "expected_version": expected_version,
                "actual_version": actual_version
            },
            **kwargs
        )


# ==========================================
# Configuration Errors (raised)
# ==========================================

class ConfigurationError(FitPlayError):
    """Settings or catalog data are invalid"""

    kind = "configuration"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Result Type
# ==========================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or FitPlayError, never both"""

    value: Optional[T] = None
    error: Optional[FitPlayError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FitPlayError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[str]:
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        """Return the value or raise the carried error"""
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"success": True, "data": self.value}
        return {"success": False, **self.error.to_dict()}
