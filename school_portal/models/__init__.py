"""Database models package."""

from school_portal.models.collection import StoredCollection
from school_portal.models.enums import CollectionName, PaymentMode, PerformanceLevel, SubjectCategory

__all__ = [
    # Store
    "StoredCollection",
    "CollectionName",
    # Domain enums
    "PerformanceLevel",
    "PaymentMode",
    "SubjectCategory",
]
