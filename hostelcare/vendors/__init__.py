"""Directory of external service providers."""

from .models import Vendor
from .repository import VendorRepository
from .service import VendorDirectory

__all__ = ["Vendor", "VendorDirectory", "VendorRepository"]
