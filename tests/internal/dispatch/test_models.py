"""Tests for dispatch models."""

import pytest
from pydantic import ValidationError

from callback_fetch._internal.dispatch.models import (
    BearerStyle,
    ErrorBody,
    FetchResponse,
    GenericStyle,
    ProgressEvent,
    RequestConfig,
)
from callback_fetch._internal.dispatch.signal import AbortSignal


class TestRequestConfig:
    """Tests for RequestConfig model."""

    def test_minimal_config(self):
        config = RequestConfig(method="GET")
        assert config.method == "GET"
        assert config.url is None
        assert config.data is None
        assert config.on_success is None

    def test_method_is_upper_cased(self):
        assert RequestConfig(method="patch").method == "PATCH"

    def test_rejects_unknown_method(self):
        with pytest.raises(ValidationError):
            RequestConfig(method="OPTIONS")

    def test_rejects_unknown_field(self):
        """Should reject misspelled options."""
        with pytest.raises(ValidationError):
            RequestConfig(method="GET", on_sucess=lambda res: None)

    def test_rejects_non_callable_callback(self):
        with pytest.raises(ValidationError):
            RequestConfig(method="GET", on_finish="not callable")

    def test_accepts_abort_signal(self):
        signal = AbortSignal()
        assert RequestConfig(method="GET", signal=signal).signal is signal

    def test_is_frozen(self):
        config = RequestConfig(method="GET")
        with pytest.raises(ValidationError):
            config.url = "https://y.io"

    def test_target_url_from_base_and_end_point(self):
        config = RequestConfig(method="GET", base_url="https://api.x.io", end_point="/users")
        assert config.target_url == "https://api.x.io/users"

    def test_target_url_prefers_url(self):
        config = RequestConfig(
            method="GET", url="https://y.io/z", base_url="https://api.x.io", end_point="/users"
        )
        assert config.target_url == "https://y.io/z"

    def test_target_url_empty_when_unresolved(self):
        assert RequestConfig(method="GET").target_url == ""


class TestHeaderStrategy:
    def test_default_is_bearer_without_authorization(self):
        assert RequestConfig(method="GET").header_strategy == BearerStyle(authorization=None)

    def test_authorization_selects_bearer(self):
        strategy = RequestConfig(method="GET", authorization="Bearer t").header_strategy
        assert isinstance(strategy, BearerStyle)
        assert strategy.authorization == "Bearer t"

    def test_headers_select_generic(self):
        strategy = RequestConfig(method="GET", headers={"X-A": "1"}).header_strategy
        assert isinstance(strategy, GenericStyle)
        assert strategy.headers == {"X-A": "1"}

    def test_both_styles_rejected(self):
        with pytest.raises(ValidationError):
            RequestConfig(method="GET", authorization="Bearer t", headers={"X-A": "1"})


class TestProgressEvent:
    def test_progress_fraction(self):
        event = ProgressEvent(loaded=50, total=200, bytes=50, upload=True)
        assert event.progress == 0.25

    def test_progress_unknown_total(self):
        assert ProgressEvent(loaded=10, bytes=10, download=True).progress is None


class TestFetchResponse:
    def test_ok_range(self):
        assert FetchResponse(status=200).ok is True
        assert FetchResponse(status=204).ok is True
        assert FetchResponse(status=301).ok is False
        assert FetchResponse(status=500).ok is False


class TestErrorBody:
    def test_reads_error_field(self):
        body = ErrorBody.model_validate({"error": "boom", "code": 7})
        assert body.error == "boom"

    def test_error_defaults_to_none(self):
        assert ErrorBody.model_validate({"message": "nope"}).error is None
