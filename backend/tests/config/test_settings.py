from pullup.config import Settings, get_settings


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "mysql+aiomysql://u:p@db:3306/pullup_test")
    monkeypatch.setenv("ECHO_SQL", "1")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.database_url == "mysql+aiomysql://u:p@db:3306/pullup_test"
        assert settings.echo_sql is True
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()


def test_settings_defaults(monkeypatch) -> None:
    for name in ("DATABASE_URL", "ECHO_SQL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    try:
        assert get_settings() == Settings()
    finally:
        get_settings.cache_clear()
