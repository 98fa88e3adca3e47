"""Tests for configuration and logging setup."""

import logging
from pathlib import Path

from fls.config import FlsConfig, configure_logging, default_socket_path


class TestSocketPath:
    def test_per_user_default(self, monkeypatch):
        monkeypatch.delenv("FLS_SOCKET", raising=False)
        monkeypatch.setenv("USER", "alice")
        assert default_socket_path() == Path("/tmp/alicefls")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FLS_SOCKET", "/run/user/1000/fls.sock")
        assert default_socket_path() == Path("/run/user/1000/fls.sock")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FLS_SOCKET", "/tmp/x")
        config = FlsConfig.from_env(verbose=1)
        assert config.socket_path == Path("/tmp/x")
        assert config.verbose == 1
        assert not config.is_daemon


class TestFlsConfig:
    def test_log_path_sits_next_to_socket(self):
        config = FlsConfig(socket_path=Path("/tmp/alicefls"))
        assert config.log_path == Path("/tmp/alicefls.log")

    def test_daemon_role(self):
        config = FlsConfig(socket_path=Path("/tmp/s"), verbose=2)
        daemon_config = config.with_daemon_role()
        assert daemon_config.is_daemon
        assert daemon_config.verbose == 0
        assert daemon_config.log_prefix == "daemon: "
        assert config.log_prefix == ""


class TestConfigureLogging:
    def teardown_method(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    def test_client_levels(self):
        for verbose, level in [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG)]:
            configure_logging(FlsConfig(socket_path=Path("/tmp/s"), verbose=verbose))
            assert logging.getLogger().level == level

    def test_daemon_logs_to_file(self, tmp_path):
        config = FlsConfig(socket_path=tmp_path / "sock").with_daemon_role()
        configure_logging(config)

        logging.getLogger("fls.test").info("hello from the daemon")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello from the daemon" in config.log_path.read_text()
