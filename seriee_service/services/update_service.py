"""Over-the-air update flow: version check, bundle swap, store fallback."""
import logging
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import requests
from sqlalchemy.orm import Session

from seriee_service.config import get_app_version
from seriee_service.models.database import SessionLocal
from seriee_service.repos import SettingsRepository
from seriee_service.services.remote_config_service import RemoteConfigService
from seriee_service.storage import BundleError, BundleStorage

logger = logging.getLogger(__name__)

STORAGE_KEY_VERSION = "app_version_code"

UPDATE_FAILED_MESSAGE = "Update failed. Please check your internet."

# Shown once to users upgrading from the pre-OTA shell
WELCOME_CHANGELOG = [
    "Refined banner selection with a 3-column grid",
    "Signed-in users go straight to home",
    "Uniform poster grid sizing",
    "Search overlay closes on selection",
    "Performance and stability improvements",
    "Fixed broken placeholder images",
    "Persistent sessions",
]


class UpdateStatus(str, Enum):
    IDLE = "idle"
    PROMPT = "prompt"
    COMPLETED = "completed"


class UpdateAction(str, Enum):
    NONE = "none"
    RELOADED = "reloaded"
    OPEN_STORE = "open_store"
    FAILED = "failed"


@dataclass
class UpdateCheck:
    status: UpdateStatus
    installed_version: str
    remote_version: Optional[str] = None
    changelog: List[str] = field(default_factory=list)
    download_url: Optional[str] = None
    code_bundle_url: Optional[str] = None

    @property
    def is_instant(self) -> bool:
        """True when the update can be applied without a store download."""
        return bool(self.code_bundle_url)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["is_instant"] = self.is_instant
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "UpdateCheck":
        """Rebuild a check echoed back by a client. Raises ValueError on a bad status."""
        return cls(
            status=UpdateStatus(data.get("status", UpdateStatus.IDLE.value)),
            installed_version=data.get("installed_version") or "",
            remote_version=data.get("remote_version"),
            changelog=list(data.get("changelog") or []),
            download_url=data.get("download_url"),
            code_bundle_url=data.get("code_bundle_url"),
        )


@dataclass
class UpdateResult:
    action: UpdateAction
    version: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["action"] = self.action.value
        return data


def parse_version(version: str) -> Tuple[Tuple[int, ...], Optional[str]]:
    """
    Split a version string into numeric segments and a pre-release tag.

    "v2.10.1-beta.2" -> ((2, 10, 1), "beta.2"). Non-numeric segments count as 0.
    """
    text = (version or "").strip().lstrip("vV")
    text = text.split("+", 1)[0]
    core, _, prerelease = text.partition("-")

    segments = []
    for part in core.split("."):
        match = re.match(r"\d+", part)
        segments.append(int(match.group()) if match else 0)

    return tuple(segments), prerelease or None


def compare_versions(a: str, b: str) -> int:
    """
    Compare two versions segment by segment.

    Returns:
        -1, 0 or 1 as a is older, equal to or newer than b
    """
    a_segments, a_pre = parse_version(a)
    b_segments, b_pre = parse_version(b)

    length = max(len(a_segments), len(b_segments))
    a_segments += (0,) * (length - len(a_segments))
    b_segments += (0,) * (length - len(b_segments))

    if a_segments != b_segments:
        return 1 if a_segments > b_segments else -1

    # A release sorts above its pre-releases
    if a_pre == b_pre:
        return 0
    if a_pre is None:
        return 1
    if b_pre is None:
        return -1
    return 1 if a_pre > b_pre else -1


def is_newer_version(remote: Optional[str], installed: str) -> bool:
    if not remote:
        return False
    return compare_versions(remote, installed) > 0


class UpdateService:
    """
    Drives the update prompt.

    The installed version is the active OTA bundle's version if one has been
    applied, otherwise the shell's built-in APP_VERSION.
    """

    def __init__(
            self,
            remote_config: Optional[RemoteConfigService] = None,
            bundle_storage: Optional[BundleStorage] = None,
            session_factory: Optional[Callable[[], Session]] = None,
            app_version: Optional[str] = None
    ):
        self.app_version = app_version or get_app_version()
        self.remote_config = remote_config or RemoteConfigService(app_version=self.app_version)
        self.bundle_storage = bundle_storage or BundleStorage()
        self.session_factory = session_factory or SessionLocal

    # ===== DEVICE STATE =====

    def get_stored_version(self) -> Optional[str]:
        db = self.session_factory()
        try:
            return SettingsRepository(db).get(STORAGE_KEY_VERSION)
        finally:
            db.close()

    def set_stored_version(self, version: str) -> None:
        db = self.session_factory()
        try:
            SettingsRepository(db).set(STORAGE_KEY_VERSION, version)
        finally:
            db.close()

    def get_installed_version(self) -> str:
        bundle_version = self.bundle_storage.current_version()
        if bundle_version and is_newer_version(bundle_version, self.app_version):
            return bundle_version
        return self.app_version

    # ===== FLOW =====

    def check_for_update(self, has_used_app: bool = False) -> UpdateCheck:
        """
        Decide what to show at startup.

        Args:
            has_used_app: The device has data from an earlier install

        Returns:
            COMPLETED with the welcome changelog for upgraded legacy installs,
            PROMPT when a newer version is published, IDLE otherwise
        """
        installed = self.get_installed_version()

        if has_used_app and not self.get_stored_version():
            logger.info("Detected upgrade from legacy app; showing welcome changelog")
            self.set_stored_version(installed)
            return UpdateCheck(
                status=UpdateStatus.COMPLETED,
                installed_version=installed,
                remote_version=installed,
                changelog=list(WELCOME_CHANGELOG),
            )

        try:
            latest = self.remote_config.get_latest_version()
            logger.info(f"Version check: installed={installed}, remote={latest}")

            if is_newer_version(latest, installed):
                return UpdateCheck(
                    status=UpdateStatus.PROMPT,
                    installed_version=installed,
                    remote_version=latest,
                    changelog=self.remote_config.get_changelog(),
                    download_url=self.remote_config.get_download_url(),
                    code_bundle_url=self.remote_config.get_code_bundle_url(),
                )
        except Exception as e:
            logger.error(f"OTA check failed: {e}", exc_info=True)

        return UpdateCheck(status=UpdateStatus.IDLE, installed_version=installed)

    def apply_update(self, check: UpdateCheck) -> UpdateResult:
        """
        Install the currently published update.

        The check only carries the user's consent. Version and URLs are read
        again from remote config, so a client cannot choose what gets installed.
        A code bundle is downloaded and activated in place; if that fails,
        or no bundle is published, the store download URL is returned.
        """
        if check.status != UpdateStatus.PROMPT:
            return UpdateResult(action=UpdateAction.NONE)

        installed = self.get_installed_version()
        latest = self.remote_config.get_latest_version()
        if not is_newer_version(latest, installed):
            logger.warning(f"Apply requested but no newer version is published (installed={installed}, remote={latest})")
            return UpdateResult(action=UpdateAction.NONE)

        if check.remote_version and compare_versions(check.remote_version, latest) != 0:
            logger.warning(f"Client asked for {check.remote_version}; applying published {latest}")

        code_bundle_url = self.remote_config.get_code_bundle_url()
        download_url = self.remote_config.get_download_url()

        if code_bundle_url:
            try:
                self.bundle_storage.download(code_bundle_url, latest)
                self.bundle_storage.set_current(latest)
                self.set_stored_version(latest)
                logger.info(f"✓ Applied OTA bundle {latest}")
                return UpdateResult(action=UpdateAction.RELOADED, version=latest)
            except (BundleError, requests.RequestException, OSError) as e:
                logger.error(f"Code push failed: {e}")

        if download_url:
            return UpdateResult(action=UpdateAction.OPEN_STORE, version=latest, url=download_url)
        return UpdateResult(
            action=UpdateAction.FAILED,
            version=latest,
            message=UPDATE_FAILED_MESSAGE,
        )

    def dismiss(self, check: UpdateCheck) -> None:
        """Mark the shown version as seen."""
        if check.remote_version:
            self.set_stored_version(check.remote_version)
