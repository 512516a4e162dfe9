from prometheus_client import Counter

# Labels stay low-cardinality: never label by key or upload id.
PARTS_UPLOADED = Counter(
    "storage_parts_uploaded_total",
    "Multipart parts acknowledged by the object store",
)

PART_BYTES_UPLOADED = Counter(
    "storage_part_bytes_uploaded_total",
    "Bytes flushed to the object store as multipart parts",
)

MULTIPART_UPLOADS = Counter(
    "storage_multipart_uploads_total",
    "Streaming multipart uploads by final outcome",
    ["outcome"],
)

SINGLE_UPLOADS = Counter(
    "storage_single_uploads_total",
    "Single-request object uploads by outcome",
    ["outcome"],
)
