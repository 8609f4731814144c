# File: dispatch_tracker/core/exceptions.py

from typing import Dict, Any, Optional
from datetime import datetime


class DispatchTrackerException(Exception):
    """Base exception for all dispatch tracker errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a dispatch tracker exception.

        Args:
            message: Human-readable error message
            code: Optional machine-processable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or "GENERIC_ERROR"
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "timestamp": datetime.now().isoformat(),
        }


# Domain-specific exceptions
class DomainException(DispatchTrackerException):
    """Base exception for domain-related errors."""

    CODE_PREFIX = "DOMAIN_"


class EntityNotFoundException(DomainException):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            f"{entity_type} with ID {entity_id} not found",
            f"{self.CODE_PREFIX}001",
            {"entity_type": entity_type, "entity_id": entity_id},
        )


class ValidationException(DispatchTrackerException):
    """Raised when caller-supplied parameters fail validation."""

    CODE_PREFIX = "VALIDATION_"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {}
        if field is not None:
            details["field"] = field
            details["value"] = value
        super().__init__(message, f"{self.CODE_PREFIX}001", details)


# Dispatch-related exceptions
class DispatchException(DispatchTrackerException):
    """Base exception for dispatch planning errors."""

    CODE_PREFIX = "DISPATCH_"


class DispatchQuantityException(DispatchException):
    """Raised when a dispatch quantity cannot be applied to an order."""

    def __init__(self, order_no: Optional[str], quantity: Any, reason: str):
        super().__init__(
            f"Invalid dispatch quantity {quantity} for order {order_no}: {reason}",
            f"{self.CODE_PREFIX}001",
            {"order_no": order_no, "quantity": quantity, "reason": reason},
        )


class StageAlreadyCompletedException(DispatchException):
    """Raised when dispatch planning is submitted for an order already planned."""

    def __init__(self, order_no: Optional[str], stage: str):
        super().__init__(
            f"Stage '{stage}' is already completed for order {order_no}",
            f"{self.CODE_PREFIX}002",
            {"order_no": order_no, "stage": stage},
        )
