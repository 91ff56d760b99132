"""
Unit tests for the exception hierarchy.
"""

import pytest

from bribe_distributor.shared.exceptions import (
    BribeApiException,
    ChainException,
    ConfigurationException,
    NoDataException,
    NonRetryableException,
    RetryableException,
    SubgraphException,
    SubmissionException,
    ValidationException,
)


@pytest.mark.parametrize(
    "exc_class,category,base",
    [
        (ConfigurationException, "configuration", NonRetryableException),
        (ValidationException, "validation", NonRetryableException),
        (NoDataException, "no_data", NonRetryableException),
        (SubgraphException, "subgraph", RetryableException),
        (BribeApiException, "bribe_api", RetryableException),
        (ChainException, "chain", RetryableException),
        (SubmissionException, "submission", ChainException),
    ],
)
def test_category_and_base(exc_class, category, base):
    exc = exc_class("something failed")

    assert isinstance(exc, base)
    assert exc.category == category
    assert exc.to_dict() == {
        "category": category,
        "message": "something failed",
    }


def test_submission_is_retryable():
    assert issubclass(SubmissionException, RetryableException)


def test_non_retryable_is_not_retryable():
    assert not issubclass(ConfigurationException, RetryableException)
