from app.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.viber_api_url == "https://chatapi.viber.com/pa/send_message"
        assert settings.rate_limit_max_requests == 100
        assert settings.rate_limit_window_seconds == 60
        assert settings.cleanup_interval_seconds == 300

    def test_reads_environment(self, mock_env):
        settings = Settings(_env_file=None)
        assert settings.viber_bot_token == "test-token"
        assert settings.environment == "test"
        assert settings.is_production is False

    def test_production_flag(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "Production")
        assert Settings(_env_file=None).is_production is True
