from __future__ import annotations

import json
import logging

import pytest

from scaletrack.config.settings import Settings, default_config_dir
from scaletrack.errors import ConfigurationError
from scaletrack.logging_config import JsonLogFormatter, configure_logging


class TestSettings:
    def test_defaults_when_missing(self, tmp_path) -> None:
        settings = Settings.load(tmp_path / "missing.yaml")
        assert settings.vision.provider == "openai"
        assert settings.defaults.chart_days == 30
        assert settings.auth.secret_key is None

    def test_home_override(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("SCALETRACK_HOME", str(tmp_path))
        assert default_config_dir() == tmp_path
        assert Settings().database.path == tmp_path / "scaletrack.db"

    def test_load_values(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "database:\n"
            f"  path: {tmp_path / 'w.db'}\n"
            "auth:\n"
            "  secret_key: abc\n"
            "  token_ttl_hours: 12\n"
            "vision:\n"
            "  provider: ollama\n"
            "  ollama_model: llava:13b\n"
            "defaults:\n"
            "  chart_days: 90\n"
            "  output_format: json\n"
            "logging:\n"
            "  level: debug\n"
        )
        settings = Settings.load(path)
        assert settings.database.path == tmp_path / "w.db"
        assert settings.auth.secret_key == "abc"
        assert settings.auth.token_ttl_hours == 12
        assert settings.vision.provider == "ollama"
        assert settings.vision.ollama_model == "llava:13b"
        assert settings.defaults.chart_days == 90
        assert settings.defaults.output_format == "json"
        assert settings.logging.level == "DEBUG"

    def test_save_round_trip_omits_secret(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        settings = Settings()
        settings.auth.secret_key = "do-not-write"
        settings.defaults.chart_days = 14
        settings.save(path)

        assert "do-not-write" not in path.read_text()
        assert Settings.load(path).defaults.chart_days == 14

    def test_bad_provider(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("vision:\n  provider: tesseract\n")
        with pytest.raises(ConfigurationError, match="vision.provider"):
            Settings.load(path)

    def test_bad_number(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("defaults:\n  chart_days: lots\n")
        with pytest.raises(ConfigurationError):
            Settings.load(path)

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("defaults: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            Settings.load(path)


class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_loggers(self):
        root = logging.getLogger()
        level = root.level
        handlers = list(root.handlers)
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("scaletrack").setLevel(logging.NOTSET)

    def test_replaces_own_handler_only(self) -> None:
        root = logging.getLogger()
        configure_logging(level="INFO")
        configure_logging(level="DEBUG", fmt="json")
        ours = [h for h in root.handlers if getattr(h, "_st_handler", False)]
        assert len(ours) == 1
        assert isinstance(ours[0].formatter, JsonLogFormatter)
        assert root.level == logging.DEBUG

    def test_quiets_http_libraries(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_verbose_enables_package_debug(self) -> None:
        configure_logging(level="WARNING", verbose=True)
        assert logging.getLogger("scaletrack").level == logging.DEBUG

    def test_verbose_cleared_on_reconfigure(self, monkeypatch) -> None:
        monkeypatch.delenv("SCALETRACK_VERBOSE", raising=False)
        configure_logging(level="WARNING", verbose=True)
        configure_logging(level="WARNING")
        assert logging.getLogger("scaletrack").level == logging.NOTSET

    def test_json_formatter(self) -> None:
        record = logging.LogRecord("scaletrack.x", logging.INFO, __file__, 1, "hi %s", ("there",), None)
        payload = json.loads(JsonLogFormatter().format(record))
        assert payload["message"] == "hi there"
        assert payload["level"] == "INFO"
        assert payload["name"] == "scaletrack.x"
