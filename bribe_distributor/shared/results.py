"""
Result types for explicit tracking of lookups and distribution runs.

This module provides structured types that make absence and partial
processing visible to callers instead of relying on exceptions or silent
defaults:
- Lookup: present(value) | absent, used for persisted blobs
- ProcessingError: a warning or error with context
- DistributionSummary: counts and diagnostics of one distribution run
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    WARNING = "warning"  # Continue processing, log issue
    ERROR = "error"  # Skip this item, continue others
    CRITICAL = "critical"  # Stop processing entirely


@dataclass
class ProcessingError:
    """
    Represents a single processing error with context.

    Attributes:
        source: Component that generated the error (e.g., "allocator", "votes")
        message: Human-readable error description
        severity: How severe the error is (affects control flow)
        context: Additional context like gauge, token, deadline
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


@dataclass
class Lookup(Generic[T]):
    """
    Typed result of reading a persisted value.

    ``found`` distinguishes "stored" from "never stored"; ``value`` may
    legitimately be None when a null was stored (e.g. a null submission).
    """

    found: bool
    value: Optional[T] = None

    @classmethod
    def present(cls, value: Optional[T]) -> "Lookup[T]":
        return cls(found=True, value=value)

    @classmethod
    def absent(cls) -> "Lookup[T]":
        return cls(found=False)


@dataclass
class DistributionSummary:
    """
    Summary of a distribution run.

    Gives a complete picture of what the allocator saw: how many deposits
    were credited or dropped, how many gauges and voters contributed, and
    any warnings raised along the way.
    """

    network: str
    deadline: int

    # Counts
    bribes_total: int = 0
    bribes_allocated: int = 0
    bribes_dropped: int = 0
    gauges_queried: int = 0
    gauges_with_votes: int = 0
    voters: int = 0
    tokens: int = 0

    # Details
    errors: List[ProcessingError] = field(default_factory=list)
    dropped_bribes: List[Dict[str, Any]] = field(default_factory=list)

    def add_warning(
        self,
        source: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add a warning to the summary."""
        self.errors.append(
            ProcessingError(
                source=source,
                message=message,
                severity=ErrorSeverity.WARNING,
                context=context or {},
            )
        )

    def warning_count(self) -> int:
        """Count total warnings."""
        return sum(
            1 for e in self.errors if e.severity == ErrorSeverity.WARNING
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "network": self.network,
            "deadline": self.deadline,
            "counts": {
                "bribes_total": self.bribes_total,
                "bribes_allocated": self.bribes_allocated,
                "bribes_dropped": self.bribes_dropped,
                "gauges_queried": self.gauges_queried,
                "gauges_with_votes": self.gauges_with_votes,
                "voters": self.voters,
                "tokens": self.tokens,
            },
            "warning_count": self.warning_count(),
            "errors": [e.to_dict() for e in self.errors],
            "dropped_bribes": self.dropped_bribes[:100],  # Limit for large runs
        }
