"""Error types raised while decoding commit records."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable error codes for commit-data failures."""

    MALFORMED_RECORD = "MALFORMED_RECORD"
    COMMIT_MISMATCH = "COMMIT_MISMATCH"
    COMMIT_NOT_FOUND = "COMMIT_NOT_FOUND"
    INVALID_CONFIG = "INVALID_CONFIG"


class CommitDataError(Exception):
    """Base exception carrying an error code and structured details."""

    code = ErrorCode.MALFORMED_RECORD

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": "error",
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class MalformedRecordError(CommitDataError):
    """Formatted git output does not have the shape the decoder expects."""

    code = ErrorCode.MALFORMED_RECORD


class CommitMismatchError(CommitDataError):
    """Message-only output belongs to a different commit than the target record."""

    code = ErrorCode.COMMIT_MISMATCH


class ConfigError(CommitDataError):
    code = ErrorCode.INVALID_CONFIG
