"""
Exception hierarchy for Chunkscope.

Defines all exception types with error codes and correlation IDs. Every
condition here is fatal to the current mode; "chunk not found" outcomes are
reported to the user and never raised.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import uuid
from typing import Any, Dict, Optional


class ChunkscopeError(Exception):
    """
    Base exception for all Chunkscope errors.

    Attributes:
        message: Human-readable error message
        error_code: Programmatic error code (e.g., "ARG_001")
        details: Additional context (dict)
        correlation_id: UUID for tracing a single invocation
        original_exception: Wrapped exception (if any)

    Example:
        raise ChunkscopeError(
            message="Operation failed",
            error_code="ERR_UNKNOWN",
            details={"path": "/data/meta"},
        )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "ERR_UNKNOWN",
        details: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging/serialization.

        Returns:
            Dictionary with all error information
        """
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "correlation_id": self.correlation_id,
            "original_error": str(self.original_exception) if self.original_exception else None,
        }


class InvalidArgumentError(ChunkscopeError):
    """
    Raised when user input cannot be interpreted.

    Error Codes:
        ARG_001: Malformed size string
        ARG_002: Malformed hex chunk identifier
        ARG_003: Unknown content format
        ARG_004: Invalid paging value or backend specification
    """

    def __init__(self, message: str, error_code: str = "ARG_001", **kwargs):
        super().__init__(message=message, error_code=error_code, **kwargs)


class SerializationError(ChunkscopeError):
    """
    Raised when a persisted metadata record cannot be decoded.

    Error Codes:
        SER_001: Malformed record bytes
        SER_002: Position outside the supported size-class ladder

    Always indicates store corruption or a format mismatch.
    """

    def __init__(self, message: str, error_code: str = "SER_001", **kwargs):
        super().__init__(message=message, error_code=error_code, **kwargs)


class StorageIOError(ChunkscopeError):
    """
    Raised when reading storage or writing output fails.

    Error Codes:
        IO_001: Storage could not be opened
        IO_002: Chunk read failed or returned fewer bytes than recorded
        IO_003: Output file could not be created or written
    """

    def __init__(self, message: str, error_code: str = "IO_001", **kwargs):
        super().__init__(message=message, error_code=error_code, **kwargs)


class AccountingMismatchError(ChunkscopeError):
    """
    Raised when allocator counters disagree with the scanned chunk records.

    Error Codes:
        ACCT_001: Used-chunk count differs for at least one size class

    Attributes:
        mismatches: Mapping of chunk size -> (allocator_used, observed)
    """

    def __init__(
        self,
        message: str,
        mismatches: Optional[Dict[int, tuple]] = None,
        error_code: str = "ACCT_001",
        **kwargs,
    ):
        self.mismatches = dict(mismatches or {})
        details = kwargs.pop("details", None) or {}
        details.setdefault(
            "mismatches",
            {str(size): {"allocator_used": used, "observed": seen}
             for size, (used, seen) in self.mismatches.items()},
        )
        super().__init__(message=message, error_code=error_code, details=details, **kwargs)
