"""Environment-driven log level selection."""

from checkout.utils.logging import get_log_level


class TestLogLevel:
    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert get_log_level() == "INFO"

        monkeypatch.setenv("PROTEAN_ENV", "development")
        assert get_log_level() == "DEBUG"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert get_log_level() == "ERROR"
