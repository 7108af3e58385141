import pytest
from pydantic import ValidationError

from shakenbake.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_destination(self) -> None:
        s = Settings()
        assert s.destination == "mock"

    def test_enabled_by_default(self) -> None:
        s = Settings()
        assert s.enabled is True

    def test_default_linear_api_url(self) -> None:
        s = Settings()
        assert s.linear_api_url == "https://api.linear.app/graphql"

    def test_default_redact_fields_empty(self) -> None:
        s = Settings()
        assert s.redact_fields == []

    def test_default_audio_mime_type(self) -> None:
        s = Settings()
        assert s.default_audio_mime_type == "audio/webm"

    def test_default_timeouts(self) -> None:
        s = Settings()
        assert s.proxy_timeout_seconds == 30
        assert s.linear_timeout_seconds == 30
        assert s.linear_upload_fallback_timeout_seconds == 30.0


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_destination(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DESTINATION", "linear")
        s = Settings()
        assert s.destination == "linear"

    def test_loads_enabled_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLED", "false")
        s = Settings()
        assert s.enabled is False

    def test_loads_label_ids_as_json_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LINEAR_DEFAULT_LABEL_IDS", '["lbl-1", "lbl-2"]')
        s = Settings()
        assert s.linear_default_label_ids == ["lbl-1", "lbl-2"]

    def test_loads_redact_fields(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDACT_FIELDS", '["console", "app.url"]')
        s = Settings()
        assert s.redact_fields == ["console", "app.url"]

    def test_loads_mock_delay(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOCK_DELAY_SECONDS", "0.25")
        s = Settings()
        assert s.mock_delay_seconds == 0.25


class TestSettingsValidation:
    def test_invalid_timeout_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROXY_TIMEOUT_SECONDS", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_enabled_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLED", "maybe")
        with pytest.raises(ValidationError):
            Settings()
