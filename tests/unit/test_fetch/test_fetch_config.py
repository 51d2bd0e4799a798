"""Unit tests for fetch configuration."""

import pytest
from pydantic import ValidationError

from wirefetch.fetch.config import FetchConfig, lower_case_keys
from wirefetch.fetch.constants import DEFAULT_USER_AGENT
from wirefetch.settings.app import FetchSettings


class TestBuildHeaders:
    """Tests for default/caller header merging."""

    def test_defaults(self) -> None:
        """Defaults are present with lower-cased names."""
        headers = FetchConfig().build_headers()

        assert headers["accept-encoding"] == "gzip, deflate, br"
        assert headers["cache-control"] == "no-cache"
        assert headers["pragma"] == "no-cache"
        assert headers["dnt"] == "1"
        assert headers["user-agent"] == DEFAULT_USER_AGENT
        assert all(key == key.lower() for key in headers)

    def test_caller_overrides_default(self) -> None:
        """A caller User-Agent replaces the default, others remain."""
        headers = FetchConfig(headers={"user-agent": "X"}).build_headers()

        assert headers["user-agent"] == "X"
        assert headers["accept-language"].startswith("en-US")

    def test_override_is_case_insensitive(self) -> None:
        """Differently-cased caller keys do not create duplicates."""
        headers = FetchConfig(headers={"ACCEPT-Encoding": "identity"}).build_headers()

        assert headers["accept-encoding"] == "identity"
        assert [key for key in headers if key == "accept-encoding"] == ["accept-encoding"]

    def test_extra_headers_added(self) -> None:
        """Caller headers without a default are added."""
        headers = FetchConfig(headers={"X-Trace": "1"}).build_headers()

        assert headers["x-trace"] == "1"

    def test_lower_case_keys(self) -> None:
        """Helper lower-cases names and keeps values."""
        assert lower_case_keys({"A-B": "C"}) == {"a-b": "C"}


class TestFetchConfig:
    """Tests for FetchConfig validation."""

    def test_defaults(self) -> None:
        """Default limits match the documented values."""
        config = FetchConfig()

        assert config.max_redirects == 10
        assert config.timeout_seconds == 10.0
        assert config.method == "GET"

    def test_method_upper_cased(self) -> None:
        """HTTP method is normalized."""
        assert FetchConfig(method="head").method == "HEAD"

    def test_negative_redirects_rejected(self) -> None:
        """max_redirects cannot be negative."""
        with pytest.raises(ValidationError):
            FetchConfig(max_redirects=-1)

    def test_unknown_field_rejected(self) -> None:
        """Unknown options are rejected."""
        with pytest.raises(ValidationError):
            FetchConfig(follow_redirect=True)  # type: ignore[call-arg]

    def test_reserved_client_options_dropped(self) -> None:
        """Redirect following and verification cannot be re-enabled."""
        config = FetchConfig(
            client_options={"follow_redirects": True, "verify": True, "http1": True}
        )

        assert config.client_options == {"http1": True}

    def test_frozen(self) -> None:
        """Config is immutable."""
        config = FetchConfig()

        with pytest.raises(ValidationError):
            config.max_redirects = 3  # type: ignore[misc]


class TestFromSettings:
    """Tests for building config from environment settings."""

    def test_settings_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment values flow into the config."""
        monkeypatch.setenv("WIREFETCH_MAX_REDIRECTS", "3")
        monkeypatch.setenv("WIREFETCH_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("WIREFETCH_USER_AGENT", "env-agent")

        config = FetchConfig.from_settings(FetchSettings(_env_file=None))

        assert config.max_redirects == 3
        assert config.timeout_seconds == 2.5
        assert config.build_headers()["user-agent"] == "env-agent"

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Explicit overrides take precedence over settings."""
        monkeypatch.setenv("WIREFETCH_USER_AGENT", "env-agent")

        config = FetchConfig.from_settings(
            FetchSettings(_env_file=None),
            headers={"User-Agent": "cli-agent"},
            max_redirects=1,
        )

        assert config.max_redirects == 1
        assert config.build_headers()["user-agent"] == "cli-agent"
