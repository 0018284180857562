"""
Operational Metrics for the inventory service

Prometheus counters for API errors, credential brokering and enrichment
outcomes. Exposed on /metrics.
"""

from prometheus_client import Counter, Histogram

API_ERRORS_TOTAL = Counter(
    "aws_inventory_api_errors_total",
    "Total number of API errors by status code and path",
    ["path", "method", "status_code"],
)

STS_ASSUME_ROLE_TOTAL = Counter(
    "aws_inventory_sts_assume_role_total",
    "STS AssumeRole exchanges by account and outcome",
    ["account", "outcome"],
)

CREDENTIAL_CACHE_HITS_TOTAL = Counter(
    "aws_inventory_credential_cache_hits_total",
    "Credential resolutions served from the lease cache",
    ["account"],
)

ENRICHMENT_OUTCOMES_TOTAL = Counter(
    "aws_inventory_enrichment_outcomes_total",
    "Secondary detail fetches by feature and outcome (value, absent, failure)",
    ["feature", "outcome"],
)

AWS_COLLECTION_PAGES = Histogram(
    "aws_inventory_collection_pages",
    "Number of vendor pages read per paginated collection",
    ["operation"],
    buckets=(1, 2, 5, 10, 25, 50, 100, 250),
)
