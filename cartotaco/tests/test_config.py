import pytest

from cartotaco.config import AppConfig, DataSourceConfig, GeocodingConfig, validate_config
from cartotaco.errors import ConfigError


def _config(tmp_path, **data):
    data.setdefault("backend", "csv")
    data.setdefault("data_dir", tmp_path)
    return AppConfig(
        data=DataSourceConfig(**data),
        geocoding=GeocodingConfig(api_key="pk.test"),
        session_secret="not-the-default",
    )


def test_valid_config_has_no_warnings(tmp_path):
    report = validate_config(_config(tmp_path))
    assert report.warnings == []
    assert report.disabled_features == []


def test_unknown_backend_is_fatal(tmp_path):
    with pytest.raises(ConfigError, match="Unknown DATA_BACKEND"):
        validate_config(_config(tmp_path, backend="mysql"))


def test_supabase_requires_credentials(tmp_path):
    with pytest.raises(ConfigError, match="SUPABASE_URL"):
        validate_config(_config(tmp_path, backend="supabase", supabase_url="https://x.supabase.co", supabase_key=""))


def test_supabase_with_credentials(tmp_path):
    config = _config(tmp_path, backend="supabase", supabase_url="https://x.supabase.co", supabase_key="k")
    assert validate_config(config).warnings == []


def test_missing_csv_directory_is_fatal(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        validate_config(_config(tmp_path, data_dir=tmp_path / "missing"))


def test_missing_mapbox_key_disables_geocoding(caplog):
    config = AppConfig(
        data=DataSourceConfig(backend="memory"),
        geocoding=GeocodingConfig(api_key=""),
        session_secret="not-the-default",
    )
    report = validate_config(config)

    assert report.disabled_features == ["geocoding"]
    assert "MAPBOX_KEY" in caplog.text


def test_default_session_secret_warns():
    config = AppConfig(data=DataSourceConfig(backend="memory"), geocoding=GeocodingConfig(api_key="pk"))
    if config.session_secret != "cartotaco-secret-change-in-production":
        pytest.skip("SESSION_SECRET set in environment")
    report = validate_config(config)
    assert any("SESSION_SECRET" in w for w in report.warnings)
    assert report.disabled_features == []


def test_defaults():
    config = AppConfig()
    assert config.recent_days == 30
    assert config.geocoding.max_distance_km == 80
