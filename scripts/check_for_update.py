"""
Run the OTA update check from the command line, optionally applying it.
Useful for verifying a newly published release before shipping it to devices.
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

from seriee_service.services.remote_config_service import RemoteConfigService
from seriee_service.services.update_service import UpdateAction, UpdateService, UpdateStatus
from seriee_service.storage import BundleStorage

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def build_service(args) -> UpdateService:
    """Create an UpdateService from command line overrides."""
    remote_config = RemoteConfigService(
        config_url=args.config_url,
        app_version=args.app_version,
    )
    bundle_storage = BundleStorage(
        bundle_dir=Path(args.bundle_dir) if args.bundle_dir else None
    )
    return UpdateService(
        remote_config=remote_config,
        bundle_storage=bundle_storage,
        app_version=args.app_version,
    )


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(description="Check for (and optionally apply) an OTA update")
    parser.add_argument(
        "--config-url",
        type=str,
        default=None,
        help="Remote config URL (default: REMOTE_CONFIG_URL)",
    )
    parser.add_argument(
        "--app-version",
        type=str,
        default=None,
        help="Installed shell version (default: APP_VERSION)",
    )
    parser.add_argument(
        "--bundle-dir",
        type=str,
        default=None,
        help="Bundle directory (default: BUNDLE_DIR or data/bundles)",
    )
    parser.add_argument(
        "--apply", action="store_true", help="Apply the update when one is available"
    )

    args = parser.parse_args()

    try:
        service = build_service(args)
        check = service.check_for_update()

        logger.info("=" * 70)
        logger.info(f"Installed version: {check.installed_version}")
        logger.info(f"Status: {check.status.value}")

        if check.status != UpdateStatus.PROMPT:
            logger.info("✓ Up to date")
            return

        logger.info(f"Remote version: {check.remote_version}")
        logger.info(f"Mode: {'instant (code bundle)' if check.is_instant else 'store download'}")
        for line in check.changelog:
            logger.info(f"  - {line}")

        if not args.apply:
            return

        result = service.apply_update(check)
        if result.action == UpdateAction.RELOADED:
            logger.info(f"✓ Bundle {result.version} is now active")
        elif result.action == UpdateAction.OPEN_STORE:
            logger.info(f"Download required: {result.url}")
        else:
            logger.error(result.message or "Update failed")
            sys.exit(1)

    except Exception as e:
        logger.error(f"Error during update check: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
