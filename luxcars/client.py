from __future__ import annotations
"""HTTP session setup shared by every outbound client."""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter, Retry

from .logger import Logger


log = Logger.bind(__name__)

USER_AGENT = 'indianluxurycars-site/1.0'
IMAGE_ACCEPT = 'image/avif,image/webp,image/apng,image/*,*/*;q=0.8'


@dataclass
class HttpClientConfig:
    timeout: float = 20.0
    max_retries: int = 3
    backoff_factor: float = 0.5
    user_agent: str = USER_AGENT
    # retries apply to idempotent reads only; writes are never replayed
    retry_methods: Sequence[str] = ("GET", "HEAD")


def make_session(config: Optional[HttpClientConfig] = None, headers: Optional[Dict[str, str]] = None) -> requests.Session:
    config = config or HttpClientConfig()
    session = requests.Session()
    retries = Retry(
        total=config.max_retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=tuple(config.retry_methods),
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({
        "User-Agent": config.user_agent,
        "Connection": "keep-alive",
    })
    if headers:
        session.headers.update(headers)
    return session


class HttpClient:
    """Base for the API clients: owns a session, closes it on exit."""

    def __init__(self, config: Optional[HttpClientConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or HttpClientConfig()
        self.session = session or make_session(self.config)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = ["HttpClientConfig", "HttpClient", "make_session", "USER_AGENT", "IMAGE_ACCEPT"]
