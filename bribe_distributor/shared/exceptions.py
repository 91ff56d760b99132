"""
Exception hierarchy for the bribe distributor.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (indexer, RPC, bribe API)
- NonRetryableException: Permanent failures that won't benefit from retry (bad input, missing data)
- ConfigurationException: Startup/config errors that prevent operation

Every exception carries a machine-readable ``category`` so that outer
surfaces (CLI, HTTP) can report the failure without parsing messages:
- ConfigurationException -> "configuration" (unknown network, missing subgraph)
- ValidationException -> "validation" (bad addresses, bad deadlines)
- NoDataException -> "no_data" (period requested but never computed)
- SubgraphException -> "subgraph" (indexer unreachable or malformed response)
- BribeApiException -> "bribe_api" (incentive deposit source failed)
- ChainException -> "chain" (RPC read failures)
- SubmissionException -> "submission" (sending the proofs transaction failed)
"""

from typing import Any, Dict


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting
    - Temporary network issues
    """

    category = "retryable"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "message": self.message}


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Missing required data
    - Business logic violations
    """

    category = "non_retryable"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "message": self.message}


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - The requested network is not configured
    - The gauges subgraph endpoint is missing
    - Required environment variables are missing
    """

    category = "configuration"


class ValidationException(NonRetryableException):
    """Exception for invalid caller input (addresses, deadlines)."""

    category = "validation"


class NoDataException(NonRetryableException):
    """
    Raised when a caller explicitly asks for a period that was never computed.

    Plain lookups return ``Lookup.absent()`` instead; this exception is only
    for the "give me this specific period" entry points.
    """

    category = "no_data"


class SubgraphException(RetryableException):
    """
    Exception for gauge/lock indexer failures.

    Inherits from RetryableException because the indexer is usually
    reachable again on the next invocation.
    """

    category = "subgraph"


class BribeApiException(RetryableException):
    """Exception for incentive deposit API failures."""

    category = "bribe_api"


class ChainException(RetryableException):
    """Exception for chain read failures (receipts, claimed amounts)."""

    category = "chain"


class SubmissionException(ChainException):
    """
    Exception for failures while sending the proofs transaction.

    Nothing is recorded as submitted when this is raised, so the period is
    recomputed and resubmitted on the next invocation.
    """

    category = "submission"
