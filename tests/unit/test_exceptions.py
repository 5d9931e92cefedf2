"""Unit tests for core/exceptions.py."""

import pytest

from core.exceptions import (
    ConfigurationError,
    CreditScannerError,
    CSVImportError,
    DiscogsAPIError,
    PermanentClientError,
    ScanCancelledError,
    ServiceInitializationError,
    SyncInProgressError,
    TransientAPIError,
)


class TestCreditScannerError:
    """Tests for the base exception class."""

    def test_message_attribute(self):
        err = CreditScannerError("something went wrong")
        assert err.message == "something went wrong"

    def test_str_output(self):
        err = CreditScannerError("something went wrong")
        assert str(err) == "something went wrong"

    def test_details_default_empty(self):
        err = CreditScannerError("msg")
        assert err.details == {}

    def test_details_provided(self):
        err = CreditScannerError("msg", details={"key": "val"})
        assert err.details == {"key": "val"}


class TestDiscogsAPIError:
    def test_carries_status_and_url(self):
        err = PermanentClientError("HTTP error 404", status_code=404, url="/releases/1")
        assert err.status_code == 404
        assert err.url == "/releases/1"
        assert isinstance(err, DiscogsAPIError)

    def test_transient_defaults(self):
        err = TransientAPIError("Request failed")
        assert err.status_code is None
        assert err.url is None
        assert isinstance(err, DiscogsAPIError)


SUBCLASSES = [
    DiscogsAPIError,
    PermanentClientError,
    TransientAPIError,
    ScanCancelledError,
    SyncInProgressError,
    CSVImportError,
    ServiceInitializationError,
    ConfigurationError,
]


@pytest.mark.parametrize("cls", SUBCLASSES, ids=lambda c: c.__name__)
class TestExceptionSubclasses:
    """All subclasses inherit from CreditScannerError and carry message/details."""

    def test_inherits_from_base(self, cls):
        err = cls("test")
        assert isinstance(err, CreditScannerError)

    def test_message_and_details(self, cls):
        err = cls("detail msg", details={"a": 1})
        assert err.message == "detail msg"
        assert err.details == {"a": 1}
        assert str(err) == "detail msg"
