from gritflow import main
from gritflow.settings import settings


class TestSentry:
	def test_disabled_without_dsn(self, monkeypatch):
		calls = []
		monkeypatch.setattr(settings, "sentry_dsn", None)
		monkeypatch.setattr(main.sentry_sdk, "init", lambda **kwargs: calls.append(kwargs))
		assert main.init_sentry() is False
		assert calls == []

	def test_enabled_with_dsn(self, monkeypatch):
		calls = []
		monkeypatch.setattr(settings, "sentry_dsn", "https://key@sentry.example.com/1")
		monkeypatch.setattr(settings, "sentry_traces_sample_rate", 0.25)
		monkeypatch.setattr(main.sentry_sdk, "init", lambda **kwargs: calls.append(kwargs))
		assert main.init_sentry() is True
		assert calls == [{"dsn": "https://key@sentry.example.com/1", "traces_sample_rate": 0.25}]
