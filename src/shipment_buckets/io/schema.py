# src/shipment_buckets/io/schema.py
from __future__ import annotations


# Input columns of a tracking export; any of them may be absent
STATUS_COLUMN = "Status"
STATUS_CODE_COLUMN = "Status Code"
VENDOR_COLUMN = "Vendor"
INPUT_COLUMNS = [STATUS_COLUMN, STATUS_CODE_COLUMN, VENDOR_COLUMN]

# Output columns appended by the bucket pipeline
BUCKET_COLUMN = "Bucket"
BUCKET_NAME_COLUMN = "BucketName"
BUCKET_SOURCE_COLUMN = "BucketSource"
FLAG_COLS = ["IsRTO", "IsNDR", "IsDelivered", "IsFinal"]

OUTPUT_STRING_COLUMNS = [BUCKET_NAME_COLUMN, BUCKET_SOURCE_COLUMN]

# desired order suffix (original columns are kept in their original order first)
OUTPUT_SUFFIX_ORDER = [BUCKET_COLUMN, BUCKET_NAME_COLUMN,
                       BUCKET_SOURCE_COLUMN] + FLAG_COLS
