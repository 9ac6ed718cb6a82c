import os
from dataclasses import dataclass

from dotenv import load_dotenv

IPAPI_URL = 'http://ip-api.com/batch'
IPAPI_MAX_BATCH = 100
# levels understood by both logging and uvicorn
LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f'{name} must be an integer, got {raw!r}')


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f'{name} must be a number, got {raw!r}')


@dataclass(frozen=True)
class Settings:
    host: str = '0.0.0.0'
    port: int = 3000
    max_ips: int = 6000
    batch_size: int = IPAPI_MAX_BATCH
    pace_ms: int = 750
    ipapi_url: str = IPAPI_URL
    ipapi_timeout: float = 20.0
    max_body_bytes: int = 2 * 1024 * 1024
    log_level: str = 'INFO'

    @property
    def pace_seconds(self) -> float:
        return self.pace_ms / 1000.0

    @classmethod
    def from_env(cls) -> 'Settings':
        """Read settings from the environment (and a local .env file, if any)."""
        load_dotenv()
        settings = cls(
            host=os.getenv('HOST', cls.host),
            port=_int_env('PORT', cls.port),
            max_ips=_int_env('MAX_IPS', cls.max_ips),
            batch_size=_int_env('IPAPI_BATCH_SIZE', cls.batch_size),
            pace_ms=_int_env('IPAPI_PACE_MS', cls.pace_ms),
            ipapi_url=os.getenv('IPAPI_URL', cls.ipapi_url),
            ipapi_timeout=_float_env('IPAPI_TIMEOUT', cls.ipapi_timeout),
            max_body_bytes=_int_env('MAX_BODY_BYTES', cls.max_body_bytes),
            log_level=os.getenv('LOG_LEVEL', cls.log_level).upper(),
        )
        settings.validate()
        return settings

    def validate(self):
        if not 1 <= self.batch_size <= IPAPI_MAX_BATCH:
            raise RuntimeError(f'IPAPI_BATCH_SIZE must be between 1 and {IPAPI_MAX_BATCH}')
        if self.max_ips < 1:
            raise RuntimeError('MAX_IPS must be positive')
        if self.pace_ms < 0:
            raise RuntimeError('IPAPI_PACE_MS must not be negative')
        if self.ipapi_timeout <= 0:
            raise RuntimeError('IPAPI_TIMEOUT must be positive')
        if self.max_body_bytes < 1:
            raise RuntimeError('MAX_BODY_BYTES must be positive')
        if not 0 < self.port < 65536:
            raise RuntimeError('PORT must be a valid TCP port')
        if self.log_level not in LOG_LEVELS:
            raise RuntimeError(f'LOG_LEVEL must be one of {", ".join(LOG_LEVELS)}')
