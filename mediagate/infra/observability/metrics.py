from prometheus_client import Counter, Histogram

# Low-cardinality labels: the operation name and a StorageErrorKind value (or "success"), never a path
OPERATIONS = Counter(
    "storage_operations_total",
    "Total storage gateway operations",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage gateway operation latency in seconds",
    ["operation"],
)
