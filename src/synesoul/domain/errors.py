"""
Engine Error Taxonomy

Every error is reported to the immediate caller. None of them may leave
a published model revision partially updated.

- DatasetError: invalid training input, fatal to the training run
- ConvergenceWarning: loss stalled, training still yields a usable model
- InvalidFeatureError: malformed inference input, rejected per call
- ModelUnavailableError: no model loaded, engine reports "not ready"
- StorageError: persistence failure, operation degrades to in-memory
- IncompatibleLabelError: feedback label outside the closed set
"""

from typing import Any, Optional


class SoulEngineError(Exception):
    """Base exception for engine errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class DatasetError(SoulEngineError):
    """Training dataset contains an invalid record."""

    def __init__(self, record_index: Optional[int], reason: str) -> None:
        location = f"record {record_index}" if record_index is not None else "dataset"
        super().__init__(
            f"Invalid {location}: {reason}",
            details={"record_index": record_index, "reason": reason},
        )
        self.record_index = record_index
        self.reason = reason


class InvalidFeatureError(SoulEngineError):
    """Feature vector does not match the agreed schema."""


class ModelUnavailableError(SoulEngineError):
    """No baseline model has been published yet."""

    def __init__(self, message: str = "No baseline model is loaded") -> None:
        super().__init__(message)


class StorageError(SoulEngineError):
    """Model store operation failed."""

    def __init__(
        self,
        message: str,
        version: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, details={"version": version})
        self.version = version
        self.original_error = original_error


class ModelVersionNotFound(StorageError):
    """Requested model version does not exist in the store."""

    def __init__(self, version: Optional[int]) -> None:
        super().__init__(f"Model version not found: {version}", version=version)


class VersionExistsError(StorageError):
    """Version is already stored; stored versions are never overwritten."""

    def __init__(self, version: Optional[int]) -> None:
        super().__init__(f"Model version already stored: {version}", version=version)


class IncompatibleLabelError(SoulEngineError):
    """Label is not part of the closed emotion set."""

    def __init__(self, label: Any) -> None:
        super().__init__(
            f"Unknown emotion label: {label!r}",
            details={"label": str(label)},
        )
        self.label = label


class ConvergenceWarning(UserWarning):
    """Training loss failed to decrease over the trailing window."""
