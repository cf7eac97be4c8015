"""Remote config client publishing OTA release parameters."""
import json
import logging
from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from seriee_service.config import get_app_version, get_remote_config_url, get_store_download_url

logger = logging.getLogger(__name__)

LATEST_VERSION_KEY = "latest_version"
DOWNLOAD_URL_KEY = "download_url"
CODE_BUNDLE_URL_KEY = "code_bundle_url"
CHANGELOG_KEY = "changelog"

OFFLINE_CHANGELOG = ["Update available!"]
EMPTY_CHANGELOG = ["New features and improvements available."]
BROKEN_CHANGELOG = ["Check the Play Store for details."]


def _flatten_parameters(data) -> Dict[str, str]:
    """
    Turn a remote config payload into string values.

    Accepts a flat object or a template of the form
    {"parameters": {"key": {"defaultValue": {"value": "..."}}}}.
    A parameter without a default value reads as "".

    Raises:
        ValueError: The payload is not one of those shapes
    """
    if not isinstance(data, dict):
        raise ValueError(f"Remote config payload must be an object, got {type(data).__name__}")

    if isinstance(data.get("parameters"), dict):
        values = {}
        for key, param in data["parameters"].items():
            param = param or {}
            default_value = param.get("defaultValue") or {} if isinstance(param, dict) else None
            if not isinstance(default_value, dict):
                raise ValueError(f"Malformed remote config parameter: {key}")
            value = default_value.get("value")
            values[key] = "" if value is None else str(value)
        return values

    values = {}
    for key, value in data.items():
        if isinstance(value, (list, dict)):
            values[key] = json.dumps(value)
        elif value is None:
            values[key] = ""
        else:
            values[key] = str(value)
    return values


class RemoteConfigService:
    """
    Reads the published release parameters.

    Every getter has a fallback so an unreachable config service never
    blocks startup: no config URL means remote config is unavailable.
    """

    def __init__(
            self,
            config_url: Optional[str] = None,
            app_version: Optional[str] = None,
            store_url: Optional[str] = None
    ):
        self.config_url = config_url or get_remote_config_url()
        self.app_version = app_version or get_app_version()
        self.store_url = store_url or get_store_download_url()
        self._values: Optional[Dict[str, str]] = None

        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        # noinspection HttpUrlsUsage
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    @property
    def available(self) -> bool:
        return bool(self.config_url)

    def fetch_and_activate(self) -> Dict[str, str]:
        """Fetch the parameters and keep them for subsequent reads."""
        response = self.session.get(self.config_url, timeout=10)
        response.raise_for_status()
        self._values = _flatten_parameters(response.json())
        return self._values

    def _get_string(self, key: str) -> str:
        if self._values is None:
            self.fetch_and_activate()
        return (self._values or {}).get(key, "")

    def get_latest_version(self) -> str:
        """Always fetches fresh values; falls back to the installed version."""
        if not self.available:
            return self.app_version
        try:
            self.fetch_and_activate()
            remote_version = self._get_string(LATEST_VERSION_KEY)
            logger.info(f"Remote config fetched: latest version = {remote_version}")
            return remote_version or self.app_version
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Failed to fetch remote config: {e}")
            return self.app_version

    def get_download_url(self) -> Optional[str]:
        if not self.available:
            return self.store_url
        try:
            return self._get_string(DOWNLOAD_URL_KEY) or self.store_url
        except (requests.RequestException, ValueError):
            return self.store_url

    def get_code_bundle_url(self) -> Optional[str]:
        if not self.available:
            return None
        try:
            return self._get_string(CODE_BUNDLE_URL_KEY) or None
        except (requests.RequestException, ValueError):
            return None

    def get_changelog(self) -> List[str]:
        if not self.available:
            return list(OFFLINE_CHANGELOG)
        raw = ""
        try:
            raw = self._get_string(CHANGELOG_KEY)
            if not raw:
                return list(EMPTY_CHANGELOG)
            parsed = json.loads(raw)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Changelog parse error: {e} (raw value: {raw!r})")
            return list(BROKEN_CHANGELOG)

        if isinstance(parsed, list):
            return [str(line) for line in parsed]
        return [str(parsed)]
