from __future__ import annotations
"""Runtime settings resolved from the environment.

``.env.local`` at the project root (or CWD) is loaded first with
python-dotenv; variables already present in the environment win.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .logger import Logger


log = Logger.bind(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE_NAME = '.env.local'

DEFAULT_QUERY_URL = 'https://api.indianluxurycars.com/query'
DEFAULT_SITE_URL = 'https://indianluxurycars.com'
DEFAULT_R2_ENDPOINT = 'https://e3715bd8aa0c6e455f26ccd0a2ba0919.r2.cloudflarestorage.com'
DEFAULT_R2_BUCKET = 'pics'
DEFAULT_PUBLIC_BASE = 'https://media.indianluxurycars.com'
DEFAULT_DB_NAME = 'used-cars-db'
DEFAULT_ACCOUNT_ID = 'e3715bd8aa0c6e455f26ccd0a2ba0919'
DEFAULT_DATABASE_ID = '98b1feaa-7ce3-4ee5-9714-03d284ac7134'


def load_env_file(root: Optional[Path] = None) -> bool:
    """Load ``.env.local`` if present. Returns True when a file was read."""
    candidates = [Path(root) / ENV_FILE_NAME] if root else [Path.cwd() / ENV_FILE_NAME, PROJECT_ROOT / ENV_FILE_NAME]
    for p in candidates:
        if p.is_file():
            load_dotenv(p, override=False)
            log.debug(f"env file loaded path={p}")
            return True
    return False


def normalize_public_base(base: Optional[str]) -> str:
    return (base or '').rstrip('/')


@dataclass
class Settings:
    query_url: str = DEFAULT_QUERY_URL
    api_token: str = ''
    site_url: str = DEFAULT_SITE_URL
    data_dir: Path = field(default_factory=lambda: PROJECT_ROOT / 'data')
    # object storage (R2, S3 compatible)
    r2_endpoint: str = DEFAULT_R2_ENDPOINT
    r2_bucket: str = DEFAULT_R2_BUCKET
    r2_public_base: str = DEFAULT_PUBLIC_BASE
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    # remote database (D1)
    cloudflare_account_id: str = DEFAULT_ACCOUNT_ID
    cloudflare_database_id: str = DEFAULT_DATABASE_ID
    cloudflare_api_token: Optional[str] = None
    cloudflare_email: Optional[str] = None
    cloudflare_global_key: Optional[str] = None
    d1_database_name: str = DEFAULT_DB_NAME
    # integrations
    unsplash_access_key: Optional[str] = None
    gsc_service_account_file: Path = field(default_factory=lambda: PROJECT_ROOT / 'scripts' / 'service.json')
    gsc_db_file: Path = field(default_factory=lambda: PROJECT_ROOT / 'scripts' / 'gsc_indexing.db')
    # web app
    db_backend: str = 'sqlite'
    sqlite_db: Path = field(default_factory=lambda: Path('database.db'))
    app_secret: str = 'dev-key'
    port: int = 5000

    @property
    def cities_dir(self) -> Path:
        return self.data_dir / 'cities'

    @property
    def scripts_dir(self) -> Path:
        return PROJECT_ROOT / 'scripts'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, *, load_file: bool = True) -> "Settings":
        if env is None:
            if load_file:
                load_env_file()
            env = os.environ

        def _get(key: str, default=None):
            v = env.get(key)
            if v is None or v == '':
                return default
            return v

        try:
            port = int(_get('PORT', 5000))
        except ValueError as e:
            raise ConfigError(f"PORT must be an integer: {e}") from e

        return cls(
            query_url=_get('LUXCARS_QUERY_URL', DEFAULT_QUERY_URL),
            api_token=_get('LUXCARS_API_TOKEN', ''),
            site_url=_get('SITE_URL', DEFAULT_SITE_URL),
            data_dir=Path(_get('DATA_DIR', PROJECT_ROOT / 'data')),
            r2_endpoint=_get('R2_ENDPOINT', DEFAULT_R2_ENDPOINT),
            r2_bucket=_get('R2_BUCKET', DEFAULT_R2_BUCKET),
            r2_public_base=normalize_public_base(_get('R2_PUBLIC_BASE', DEFAULT_PUBLIC_BASE)),
            r2_access_key_id=_get('R2_ACCESS_KEY_ID'),
            r2_secret_access_key=_get('R2_SECRET_ACCESS_KEY'),
            cloudflare_account_id=_get('CLOUDFLARE_ACCOUNT_ID', DEFAULT_ACCOUNT_ID),
            cloudflare_database_id=_get('CLOUDFLARE_DATABASE_ID', DEFAULT_DATABASE_ID),
            cloudflare_api_token=_get('CLOUDFLARE_API_TOKEN'),
            cloudflare_email=_get('CLOUDFLARE_EMAIL'),
            cloudflare_global_key=_get('CLOUDFLARE_GLOBAL_KEY'),
            d1_database_name=_get('D1_DATABASE_NAME', DEFAULT_DB_NAME),
            unsplash_access_key=_get('UNSPLASH_ACCESS_KEY'),
            gsc_service_account_file=Path(_get('GSC_SERVICE_ACCOUNT_FILE', PROJECT_ROOT / 'scripts' / 'service.json')),
            gsc_db_file=Path(_get('GSC_DB_FILE', PROJECT_ROOT / 'scripts' / 'gsc_indexing.db')),
            db_backend=_get('DB_BACKEND', 'sqlite').lower(),
            sqlite_db=Path(_get('SQLITE_DB', 'database.db')),
            app_secret=_get('APP_SECRET', 'dev-key'),
            port=port,
        )


__all__ = ["Settings", "load_env_file", "normalize_public_base", "PROJECT_ROOT"]
