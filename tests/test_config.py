from telar import config


def test_override_replaces_single_setting():
    before = config.get_settings()
    try:
        changed = config.override(default_page_size=5)
        assert changed.default_page_size == 5
        assert changed.jwt_secret == before.jwt_secret
        assert config.get_settings().default_page_size == 5
    finally:
        config.override(**before._asdict())


def test_env_is_read(monkeypatch):
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "50")
    monkeypatch.setenv("COOKIE_SECURE", "true")
    settings = config.load_settings()
    assert settings.default_page_size == 50
    assert settings.cookie_secure is True
