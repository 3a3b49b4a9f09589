#!/usr/bin/env python3
"""
Standardized exception hierarchy for the news pipeline.

Provides specific exception types for the failure classes the refresh,
enrichment and streaming jobs distinguish between, plus retry helpers.
"""

import random
from typing import Optional, Dict, Any


class NewsPipelineError(Exception):
    """Base exception for all news pipeline errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Configuration-related exceptions
class ConfigurationError(NewsPipelineError):
    """Configuration is invalid or missing."""

    def __init__(self, config_key: str, issue: str = "not configured"):
        message = f"{config_key} {issue}"
        context = {
            'config_key': config_key,
            'issue': issue
        }
        super().__init__(message, context=context)


# Upstream (third-party API) exceptions
class UpstreamError(NewsPipelineError):
    """A third-party API call failed."""

    def __init__(self, service: str, message: str, status: Optional[int] = None):
        context = {
            'service': service,
            'status': status
        }
        super().__init__(f"{service} error: {message}", context=context)
        self.service = service
        self.status = status


class UpstreamTimeoutError(UpstreamError):
    """A third-party API call timed out."""

    def __init__(self, service: str, timeout_seconds: float):
        super().__init__(service, f"timed out after {timeout_seconds}s")
        self.context['timeout_seconds'] = timeout_seconds


class GenerationError(UpstreamError):
    """The generation API could not produce text after all attempts."""

    def __init__(self, category: str, attempts: int, original_error: Exception):
        super().__init__('gemini', f"generation for {category} failed after {attempts} attempts: {original_error}")
        self.context.update({
            'category': category,
            'attempts': attempts,
            'original_error': str(original_error)
        })


class JudgeUnavailableError(NewsPipelineError):
    """The semantic judge could not be consulted at all."""

    def __init__(self, reason: str, original_error: Optional[Exception] = None):
        context = {'reason': reason}
        if original_error is not None:
            context['original_error'] = str(original_error)
        super().__init__(f"Judge unavailable: {reason}", context=context)


# Storage-related exceptions
class StorageError(NewsPipelineError):
    """Base exception for storage errors."""
    pass


class StorageOperationError(StorageError):
    """A storage operation failed; keeps the backend code for classification."""

    def __init__(self, operation: str, table: str, original_error: Exception):
        backend_message = getattr(original_error, 'message', None) or str(original_error)
        message = f"Storage {operation} failed on table {table}: {backend_message}"
        context = {
            'operation': operation,
            'table': table,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)
        self.operation = operation
        self.table = table
        self.code = getattr(original_error, 'code', None)
        self.backend_message = backend_message


# Validation-related exceptions
class ValidationError(NewsPipelineError):
    """Request data validation failed."""

    def __init__(self, field: str, expected: str):
        message = f"Validation failed for {field}: expected {expected}"
        super().__init__(message, context={'field': field, 'expected': expected})


# Recovery utilities
class ErrorRecovery:
    """Utilities for error recovery and retry logic."""

    RETRYABLE_STATUSES = frozenset({403, 429, 500, 502, 503, 504})

    @staticmethod
    def is_retryable_status(status: int) -> bool:
        """403, 429 and every 5xx are worth another attempt; other 4xx are final."""
        return status in ErrorRecovery.RETRYABLE_STATUSES or 500 <= status < 600

    @staticmethod
    def is_retryable_error(error: Exception) -> bool:
        """Check if an error is potentially retryable."""
        if isinstance(error, UpstreamTimeoutError):
            return True
        if isinstance(error, UpstreamError):
            return error.status is None or ErrorRecovery.is_retryable_status(error.status)
        return False

    @staticmethod
    def get_retry_delay(attempt: int, base_delay: float = 0.5, max_delay: float = 30.0,
                        jitter: float = 0.3) -> float:
        """
        Get exponential backoff delay in seconds with +/- jitter.

        Args:
            attempt: Zero-based attempt number that just failed
            base_delay: Delay after the first failure
            max_delay: Upper bound before jitter
            jitter: Fractional jitter applied in both directions
        """
        delay = min(base_delay * (2 ** attempt), max_delay)
        return max(0.0, delay * random.uniform(1 - jitter, 1 + jitter))
