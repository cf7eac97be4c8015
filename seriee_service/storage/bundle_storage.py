"""Local storage for over-the-air code bundles."""

import json
import logging
import os
import re
import shutil
import zipfile
from datetime import UTC, datetime
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from seriee_service.config import get_bundle_dir

logger = logging.getLogger(__name__)

CURRENT_FILE = "current.json"
VERSION_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]*$")


class BundleError(Exception):
    """Raised when a bundle cannot be downloaded, verified or activated."""


class BundleStorage:
    """
    Downloads zipped web bundles, unpacks them under <bundle_dir>/<version>
    and tracks which one is active in current.json.

    Nothing is active until set_current() is called, so a failed download
    never replaces the running bundle.
    """

    def __init__(self, bundle_dir: Path | None = None, session: requests.Session | None = None):
        """
        Initialize bundle storage.

        Args:
            bundle_dir: Directory holding bundles (from config if None)
            session: HTTP session used for downloads
        """
        self.bundle_dir = Path(bundle_dir) if bundle_dir is not None else get_bundle_dir()

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=3,
                backoff_factor=1,
                status_forcelist=[429, 500, 502, 503, 504]
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            # noinspection HttpUrlsUsage
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def _version_dir(self, version: str) -> Path:
        if not version or not VERSION_PATTERN.match(version) or ".." in version:
            raise BundleError(f"Invalid bundle version: {version!r}")
        return self.bundle_dir / version

    def download(self, url: str, version: str, chunk_size: int = 65536) -> Path:
        """
        Download and unpack a bundle.

        Args:
            url: Location of the zipped bundle
            version: Version id; also the directory name
            chunk_size: Streaming chunk size in bytes

        Returns:
            Path of the unpacked bundle

        Raises:
            BundleError: Download failed or archive is invalid
        """
        target = self._version_dir(version)
        self.bundle_dir.mkdir(parents=True, exist_ok=True)
        archive_path = self.bundle_dir / f".{version}.zip.part"
        staging_dir = self.bundle_dir / f".{version}.extracting"

        logger.info(f"Downloading bundle {version} from {url}...")
        try:
            with self.session.get(url, stream=True, timeout=30) as response:
                response.raise_for_status()
                with open(archive_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=chunk_size):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            archive_path.unlink(missing_ok=True)
            raise BundleError(f"Failed to download bundle {version}: {e}") from e

        try:
            if not zipfile.is_zipfile(archive_path):
                raise BundleError(f"Bundle {version} is not a zip archive")

            if staging_dir.exists():
                shutil.rmtree(staging_dir)
            staging_dir.mkdir(parents=True)

            with zipfile.ZipFile(archive_path) as archive:
                root = staging_dir.resolve()
                for member in archive.namelist():
                    destination = (staging_dir / member).resolve()
                    if root != destination and root not in destination.parents:
                        raise BundleError(f"Bundle {version} contains unsafe path: {member}")
                archive.extractall(staging_dir)

            if target.exists():
                shutil.rmtree(target)
            os.replace(staging_dir, target)
        except (zipfile.BadZipFile, OSError) as e:
            raise BundleError(f"Failed to unpack bundle {version}: {e}") from e
        finally:
            archive_path.unlink(missing_ok=True)
            if staging_dir.exists():
                shutil.rmtree(staging_dir, ignore_errors=True)

        size = sum(p.stat().st_size for p in target.rglob("*") if p.is_file()) / 1024 / 1024
        logger.info(f"✓ Downloaded bundle {version} ({size:.2f} MB)")
        return target

    def set_current(self, version: str) -> Path:
        """
        Mark a downloaded bundle as the active one.

        Raises:
            BundleError: Bundle not downloaded
        """
        target = self._version_dir(version)
        if not target.is_dir():
            raise BundleError(f"Bundle {version} has not been downloaded")

        pointer = {
            "version": version,
            "path": str(target),
            "activated_at": datetime.now(UTC).isoformat(),
        }
        tmp_path = self.bundle_dir / f".{CURRENT_FILE}.tmp"
        with open(tmp_path, "w") as f:
            json.dump(pointer, f)
        os.replace(tmp_path, self.bundle_dir / CURRENT_FILE)

        logger.info(f"✓ Activated bundle {version}")
        return target

    def current_version(self) -> str | None:
        """Version of the active bundle, or None for the built-in one."""
        pointer_path = self.bundle_dir / CURRENT_FILE
        if not pointer_path.exists():
            return None
        try:
            with open(pointer_path) as f:
                return json.load(f).get("version")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Unreadable bundle pointer {pointer_path}: {e}")
            return None

    def list_bundles(self) -> list[str]:
        if not self.bundle_dir.exists():
            return []
        return sorted(
            p.name for p in self.bundle_dir.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        )

    def delete_bundle(self, version: str) -> bool:
        """
        Delete a downloaded bundle. The active bundle is never deleted.

        Returns:
            True if deleted
        """
        if version == self.current_version():
            logger.warning(f"Refusing to delete active bundle {version}")
            return False
        try:
            target = self._version_dir(version)
        except BundleError as e:
            logger.error(str(e))
            return False
        if not target.is_dir():
            return False
        shutil.rmtree(target)
        logger.info(f"✓ Deleted bundle {version}")
        return True

    def reset(self) -> None:
        """Fall back to the built-in bundle."""
        (self.bundle_dir / CURRENT_FILE).unlink(missing_ok=True)
        logger.info("Reset to built-in bundle")
