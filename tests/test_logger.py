"""Tests for logger configuration."""

import io

from tmod.logger import logger, resolve_level, setup_logger


class TestResolveLevel:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TMOD_DEBUG", raising=False)
        assert resolve_level() == "INFO"
        assert resolve_level(quiet=True) == "WARNING"

    def test_debug_env(self, monkeypatch):
        monkeypatch.setenv("TMOD_DEBUG", "1")
        assert resolve_level() == "DEBUG"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("TMOD_DEBUG", "1")
        assert resolve_level("error", quiet=True) == "ERROR"


class TestSetupLogger:
    def test_quiet_hides_info(self, monkeypatch):
        monkeypatch.delenv("TMOD_DEBUG", raising=False)
        sink = io.StringIO()
        setup_logger(quiet=True, sink=sink, colorize=False)

        logger.info("hidden")
        logger.warning("shown")

        assert "hidden" not in sink.getvalue()
        assert "| WARNING  | shown" in sink.getvalue()

    def test_log_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TMOD_DEBUG", raising=False)
        path = tmp_path / "tmod.log"
        setup_logger(sink=io.StringIO(), log_file=path, colorize=False)

        logger.debug("only in file")
        logger.remove()

        assert "only in file" in path.read_text(encoding="utf-8")
