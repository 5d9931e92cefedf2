"""Unit tests for core/sentry.py."""

from unittest.mock import patch

from core.sentry import add_discogs_breadcrumb, capture_exception, init_sentry


class TestInitSentry:
    @patch("core.sentry.sentry_sdk")
    def test_none_dsn_skips_init(self, mock_sdk):
        init_sentry(dsn=None)
        mock_sdk.init.assert_not_called()

    @patch("core.sentry.sentry_sdk")
    def test_empty_dsn_skips_init(self, mock_sdk):
        init_sentry(dsn="")
        mock_sdk.init.assert_not_called()

    @patch("core.sentry.sentry_sdk")
    def test_valid_dsn_calls_init(self, mock_sdk):
        init_sentry(dsn="https://examplePublicKey@o0.ingest.sentry.io/0", release="0.3.0")
        mock_sdk.init.assert_called_once()
        call_kwargs = mock_sdk.init.call_args[1]
        assert call_kwargs["dsn"] == "https://examplePublicKey@o0.ingest.sentry.io/0"
        assert call_kwargs["release"] == "0.3.0"
        assert call_kwargs["environment"] == "production"


class TestAddDiscogsBreadcrumb:
    @patch("core.sentry.sentry_sdk")
    def test_adds_breadcrumb(self, mock_sdk):
        add_discogs_breadcrumb("throttled", {"url": "/releases/1", "wait_s": 2.0}, level="warning")
        mock_sdk.add_breadcrumb.assert_called_once_with(
            category="discogs",
            message="throttled",
            data={"url": "/releases/1", "wait_s": 2.0},
            level="warning",
        )

    @patch("core.sentry.sentry_sdk")
    def test_default_data_is_empty(self, mock_sdk):
        add_discogs_breadcrumb("fetch_failed")
        call_kwargs = mock_sdk.add_breadcrumb.call_args[1]
        assert call_kwargs["data"] == {}
        assert call_kwargs["level"] == "info"


class TestCaptureException:
    @patch("core.sentry.sentry_sdk")
    def test_captures_without_context(self, mock_sdk):
        err = ValueError("boom")
        capture_exception(err)
        mock_sdk.set_context.assert_not_called()
        mock_sdk.capture_exception.assert_called_once_with(err)

    @patch("core.sentry.sentry_sdk")
    def test_captures_with_scan_context(self, mock_sdk):
        err = ValueError("boom")
        ctx = {"artist_id": "12345", "item_id": 7}
        capture_exception(err, context=ctx)
        mock_sdk.set_context.assert_called_once_with("scan", ctx)
        mock_sdk.capture_exception.assert_called_once_with(err)
