"""
Prometheus counters for content-locator quality.

Exposed in text format at GET /metrics.
"""

from prometheus_client import Counter

MAGNET_LINKS_INVALID = Counter(
    "magnet_links_invalid_total",
    "Magnet links from which no btih hash could be extracted",
    ["reason"],
)

HASH_VALIDATION_FAILURES = Counter(
    "hash_validation_failures_total",
    "SHA-256 hashes rejected by the validation gate",
    ["family"],
)
