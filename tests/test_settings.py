"""Tests for Settings - defaults and environment overrides."""

from refresh_fetch.settings import Settings


def test_defaults():
    s = Settings()
    assert s.request_timeout == 30.0
    assert s.follow_redirects is True
    assert s.base_url is None
    assert s.default_content_type == "application/json"
    assert s.debug is False


def test_from_env(monkeypatch):
    monkeypatch.setenv("REFRESH_FETCH_TIMEOUT", "2.5")
    monkeypatch.setenv("REFRESH_FETCH_DEBUG", "true")
    monkeypatch.setenv("REFRESH_FETCH_BASE_URL", "https://api.test")

    s = Settings.from_env()
    assert s.request_timeout == 2.5
    assert s.debug is True
    assert s.base_url == "https://api.test"


def test_unrelated_env_is_ignored(monkeypatch):
    for name in ("REFRESH_FETCH_TIMEOUT", "REFRESH_FETCH_DEBUG", "REFRESH_FETCH_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HTTP_PROXY_TIMEOUT", "oops")

    s = Settings.from_env()
    assert s.request_timeout == 30.0
    assert s.debug is False
