# src/shipment_buckets/__init__.py
from .models import Bucket, FamilyFilter
from .rules.resolver import StatusBucketResolver, Classification
from .pipelines.workbook_processor import WorkbookProcessor

__all__ = [
    "Bucket",
    "FamilyFilter",
    "StatusBucketResolver",
    "Classification",
    "WorkbookProcessor",
]
