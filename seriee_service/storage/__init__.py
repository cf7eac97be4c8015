"""Bundle storage"""

from seriee_service.storage.bundle_storage import BundleError, BundleStorage

__all__ = ["BundleError", "BundleStorage"]
