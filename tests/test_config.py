import pytest

from ip_batch_lookup.config import Settings


def test_defaults(monkeypatch):
    for name in ('PORT', 'MAX_IPS', 'IPAPI_BATCH_SIZE', 'IPAPI_PACE_MS', 'IPAPI_URL', 'IPAPI_TIMEOUT'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr('ip_batch_lookup.config.load_dotenv', lambda: False)
    settings = Settings.from_env()
    assert settings.port == 3000
    assert settings.max_ips == 6000
    assert settings.batch_size == 100
    assert settings.pace_seconds == 0.75
    assert settings.ipapi_url == 'http://ip-api.com/batch'


def test_env_overrides(monkeypatch):
    monkeypatch.setattr('ip_batch_lookup.config.load_dotenv', lambda: False)
    monkeypatch.setenv('PORT', '8080')
    monkeypatch.setenv('IPAPI_PACE_MS', '1500')
    monkeypatch.setenv('IPAPI_BATCH_SIZE', '50')
    settings = Settings.from_env()
    assert settings.port == 8080
    assert settings.pace_seconds == 1.5
    assert settings.batch_size == 50


@pytest.mark.parametrize('name,value', [
    ('IPAPI_BATCH_SIZE', '101'), ('IPAPI_BATCH_SIZE', '0'), ('MAX_IPS', 'lots'), ('PORT', '70000'),
])
def test_bad_values_fail_fast(monkeypatch, name, value):
    monkeypatch.setattr('ip_batch_lookup.config.load_dotenv', lambda: False)
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(Exception):
        settings.max_ips = 1


@pytest.mark.parametrize('value', ['VERBOSE', 'WARN', 'trace'])
def test_unknown_log_level_fails_fast(monkeypatch, value):
    monkeypatch.setattr('ip_batch_lookup.config.load_dotenv', lambda: False)
    monkeypatch.setenv('LOG_LEVEL', value)
    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_log_level_is_case_insensitive(monkeypatch):
    monkeypatch.setattr('ip_batch_lookup.config.load_dotenv', lambda: False)
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    assert Settings.from_env().log_level == 'DEBUG'
