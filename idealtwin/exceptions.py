"""
Standardized exception hierarchy for idealtwin
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class TwinError(Exception):
    """
    Base exception for all idealtwin errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise TwinError(
            message="Failed to save user data",
            username="jana",
            operation="save_user_data",
            context={"habits": 3}
        )
    """

    def __init__(
        self,
        message: str,
        username: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.username = username
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.utcnow()

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "username": self.username,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for toasts and API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(TwinError):
    """
    Raised when user input fails validation, before any state is touched

    Examples:
    - Empty habit title
    - Malformed HH:MM time
    - Incomplete registration form

    Example:
        raise ValidationError(
            message="Title cannot be empty",
            field="title",
            value="   "
        )
    """

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


class ConfirmationRequiredError(TwinError):
    """Destructive action attempted without explicit confirmation"""

    def __init__(self, message: str = "Confirmation required", action: Optional[str] = None, **kwargs):
        self.action = action
        super().__init__(
            message=message,
            user_message="Please confirm this action. It cannot be undone.",
            context={"action": action},
            **kwargs
        )


# ==========================================
# Lookup Errors
# ==========================================

class NotFoundError(TwinError):
    """Requested record does not exist in the current state"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
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


class HabitNotFoundError(NotFoundError):
    """Habit id not present in user state"""

    def __init__(self, habit_id: str, **kwargs):
        super().__init__(
            message=f"Habit {habit_id} not found",
            record_type="Habit",
            record_id=habit_id,
            **kwargs
        )


class BlockNotFoundError(NotFoundError):
    """Time block id not present in the day plan"""

    def __init__(self, block_id: str, **kwargs):
        super().__init__(
            message=f"Time block {block_id} not found",
            record_type="Time block",
            record_id=block_id,
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(TwinError):
    """
    Base class for persistence-related errors
    """
    pass


class MalformedPayloadError(PersistenceError):
    """Stored payload cannot be turned into a user state; treated as no data"""

    def __init__(self, message: str, missing_field: Optional[str] = None, **kwargs):
        self.missing_field = missing_field
        super().__init__(
            message=message,
            user_message="Your saved data could not be loaded.",
            context={"missing_field": missing_field},
            **kwargs
        )


class CacheError(PersistenceError):
    """Local cache read/write failed"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        self.path = path
        super().__init__(
            message=message,
            user_message="We couldn't save your data on this device.",
            context={"path": path},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(TwinError):
    """
    Base class for external service failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'an external service'}. Please try again later."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class RemoteStoreError(ExternalAPIError):
    """Remote profile store unreachable or returned an error"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            service="Remote profile store",
            **kwargs
        )


class SuggestionServiceError(ExternalAPIError):
    """Plan/habit suggestion generation failed; existing plan is kept"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            service="Suggestion service",
            user_message="We couldn't generate suggestions right now. Your current plan was kept.",
            **kwargs
        )


# ==========================================
# Authentication
# ==========================================

class AuthenticationError(TwinError):
    """Authentication failed"""

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        super().__init__(
            message=message,
            user_message="Authentication failed. Please check your credentials.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(TwinError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The app is not properly configured.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    username: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> TwinError:
    """
    Wrap external exceptions (httpx, json, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        username: Username if applicable
        context: Additional context

    Returns:
        Appropriate TwinError subclass

    Example:
        try:
            await client.put(url, json=payload)
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation="save_user_data")
    """
    import httpx

    if isinstance(error, httpx.TimeoutException):
        return RemoteStoreError(
            message=f"Request timed out: {str(error)}",
            username=username,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return RemoteStoreError(
            message=f"Remote store returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            username=username,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return RemoteStoreError(
            message=f"Remote store unreachable: {str(error)}",
            username=username,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return TwinError(
            message=f"{operation} failed: {str(error)}",
            username=username,
            operation=operation,
            context=context,
            cause=error
        )
