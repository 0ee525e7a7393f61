import pytest

from bloomtask.config.settings import get_logging_config, get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_packaged_defaults_carry_both_thresholds(fresh_settings, monkeypatch):
    monkeypatch.delenv("BLOOMTASK_CONFIG_PATH", raising=False)
    settings = get_settings()
    assert settings.proximity.locations_threshold_m == 15
    assert settings.proximity.tasks_threshold_m == 50
    assert settings.ingestion.store.locations_table == "user_locations"


def test_env_overrides_apply_to_credentials_and_log_level(fresh_settings, monkeypatch):
    monkeypatch.delenv("BLOOMTASK_CONFIG_PATH", raising=False)
    monkeypatch.setenv("BLOOMTASK_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("BLOOMTASK_STORE_URL", "https://example.supabase.co")
    monkeypatch.setenv("BLOOMTASK_STORE_KEY", "anon-key")
    monkeypatch.setenv("WEATHERAPI_KEY", "wa-key")

    settings = get_settings()

    assert settings.app.log_level == "DEBUG"
    assert settings.ingestion.store.base_url == "https://example.supabase.co"
    assert settings.ingestion.store.api_key == "anon-key"
    assert settings.ingestion.weather.weatherapi.api_key == "wa-key"


def test_external_config_file_replaces_defaults(fresh_settings, monkeypatch, tmp_path):
    path = tmp_path / "bloomtask.yaml"
    path.write_text(
        "proximity:\n  locations_threshold_m: 25\n  tasks_threshold_m: 100\n"
        "ingestion:\n  store:\n    base_url: http://store.local\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BLOOMTASK_CONFIG_PATH", str(path))

    settings = get_settings()

    assert settings.proximity.locations_threshold_m == 25
    assert settings.proximity.tasks_threshold_m == 100
    assert settings.digest.week_starts_on == 0


def test_negative_threshold_is_rejected(fresh_settings, monkeypatch, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(
        "proximity:\n  locations_threshold_m: -1\ningestion:\n  store:\n    base_url: http://x\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BLOOMTASK_CONFIG_PATH", str(path))
    with pytest.raises(ValueError):
        get_settings()


def test_logging_config_is_a_dictconfig_mapping():
    config = get_logging_config()
    assert config["version"] == 1
    assert "console" in config["handlers"]
