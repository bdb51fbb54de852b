"""Path normalization and HTML fetch with change detection."""

from schemaboard.crawler.fetcher import PageFetcher, compute_fingerprint
from schemaboard.crawler.paths import normalize_path

__all__ = ["PageFetcher", "compute_fingerprint", "normalize_path"]
