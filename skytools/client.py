import configparser
import logging
import os
import random
from pathlib import Path
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

SESSION_ENV_PREFIX = "SKYWARD_SESSION_"


def random_user_agent():
    chrome = f"{random.randint(120, 144)}.0.{random.randint(0, 8000)}.{random.randint(0, 200)}"
    return (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        f"AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{chrome} Safari/537.36"
    )


def _normalize_base_url(url):
    url = (url or "").strip()
    if url and not url.endswith("/"):
        url += "/"
    return url


class SkywardClient:
    """Requests wrapper for an already authenticated Skyward session.

    The client does not log in. The session form values the portal expects
    on every POST (``dwd``, ``wfaacl``, ``encses`` ...) and the cookies are
    supplied by the caller, the environment or ``config.ini``.
    """

    def __init__(
        self,
        base_url=None,
        session_values: Optional[Dict[str, str]] = None,
        cookies: Optional[Dict[str, str]] = None,
        timeout=30,
    ):
        self._timeout = timeout
        self._base_url = base_url
        self._session_values = session_values
        self.session = requests.Session()
        self.session.trust_env = False
        self.session.headers.update({"User-Agent": random_user_agent()})
        if cookies:
            self.session.cookies.update(cookies)

    def _env_settings(self):
        base_url = os.getenv("SKYWARD_BASE_URL", "")
        values = {}
        for key, value in os.environ.items():
            if key.startswith(SESSION_ENV_PREFIX) and value:
                values[key[len(SESSION_ENV_PREFIX) :].lower()] = value
        return base_url, values

    def _config_path(self):
        repo_root = Path(__file__).resolve().parents[1]
        cwd = Path.cwd()
        candidates = [
            cwd / "config.ini",
            repo_root / "config.ini",
        ]
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None

    def _config_settings(self):
        path = self._config_path()
        if path is None:
            return "", {}
        config = configparser.ConfigParser()
        config.read(path, encoding="utf-8")
        base_url = config.get("portal", "base_url", fallback="").strip()
        values = {}
        if config.has_section("session"):
            values = {
                key: value.strip()
                for key, value in config.items("session")
                if value.strip()
            }
        return base_url, values

    def _resolve_settings(self):
        env_url, env_values = self._env_settings()
        config_url, config_values = self._config_settings()

        base_url = self._base_url or env_url or config_url
        if self._session_values is not None:
            values = dict(self._session_values)
        else:
            values = dict(config_values)
            values.update(env_values)
        return _normalize_base_url(base_url), values

    @property
    def base_url(self):
        base_url, _ = self._resolve_settings()
        if not base_url:
            raise ValueError(
                "Skyward base URL is not configured; pass base_url, set "
                "SKYWARD_BASE_URL or add [portal] base_url to config.ini"
            )
        return base_url

    def build_url(self, path):
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path.lstrip('/')}"

    def get(self, url, **kwargs):
        kwargs.setdefault("timeout", self._timeout)
        response = self.session.get(self.build_url(url), **kwargs)
        response.raise_for_status()
        return response

    def post(self, url, data=None, **kwargs):
        _, values = self._resolve_settings()
        payload = dict(values)
        if data:
            payload.update(data)
        kwargs.setdefault("timeout", self._timeout)
        target = self.build_url(url)
        logger.debug(f"POST {target} with {len(payload)} form fields")
        response = self.session.post(target, data=payload, **kwargs)
        response.raise_for_status()
        return response
