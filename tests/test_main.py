"""Tests for the command-line entry point and logging setup."""

import io
import json
import logging
from pathlib import Path

import pytest

from targetprocess_mcp.observability import configure_logging
from targetprocess_mcp.server import main as main_module


class TestCli:
    def test_parser_defaults(self) -> None:
        args = main_module.build_parser().parse_args([])

        assert args.config is None
        assert args.log_level == "INFO"
        assert args.log_format == "text"

    def test_missing_config_exits_with_error(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            code = main_module.serve(str(tmp_path / "missing.json"))

        assert code == 1
        assert "Failed to load configuration" in caplog.text

    def test_config_flag_ignores_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that --config forces file-based configuration."""
        monkeypatch.setenv("TP_DOMAIN", "env.tpondemand.com")
        monkeypatch.setenv("TP_TOKEN", "env-token")
        path = tmp_path / "targetprocess.json"
        path.write_text(
            json.dumps({"domain": "file.tpondemand.com", "credentials": {"token": "file"}}),
            encoding="utf-8",
        )
        created = []

        class RecordingServer:
            def __init__(self, **kwargs: object) -> None:
                created.append(kwargs)

            async def run(self) -> None:
                return None

        monkeypatch.setattr(main_module, "TargetProcessServer", RecordingServer)

        assert main_module.serve(str(path)) == 0
        assert created == [{"config_path": str(path), "use_env": False}]


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format(self) -> None:
        stream = io.StringIO()
        configure_logging("DEBUG", "json", stream=stream)

        logging.getLogger("targetprocess_mcp.test").info("ready")

        record = json.loads(stream.getvalue().strip())
        assert record["message"] == "ready"
        assert record["level"] == "INFO"
        assert record["logger"] == "targetprocess_mcp.test"

    def test_text_format(self) -> None:
        stream = io.StringIO()
        configure_logging("WARNING", "text", stream=stream)

        logging.getLogger("targetprocess_mcp.test").info("hidden")
        logging.getLogger("targetprocess_mcp.test").warning("shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "targetprocess_mcp.test - WARNING - shown" in output
