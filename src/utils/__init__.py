"""Utility modules for the catalog search backend.

- **errors** -- exception hierarchy rooted at CatalogSearchError.
- **concurrency** -- semaphore-throttled gather for store fan-out and the
  chunked thread-pool filter used by the filter pipeline.
- **logging** -- structlog setup; console output in development, JSON in
  production, plus request-context binding.
- **text_normalizer** -- comma-separated term splitting, multi-valued text
  fields and keyword facet ids.
"""

from src.utils.concurrency import partitioned_filter, throttled_gather
from src.utils.errors import (
    CatalogSearchError,
    ConfigurationError,
    MalformedGeometryError,
    NotFoundError,
    ParameterParseError,
    StoreUnavailableError,
    UpstreamUnavailableError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.text_normalizer import keyword_set, split_terms

__all__ = [
    "CatalogSearchError",
    "ConfigurationError",
    "MalformedGeometryError",
    "NotFoundError",
    "ParameterParseError",
    "StoreUnavailableError",
    "UpstreamUnavailableError",
    "configure_logging",
    "get_logger",
    "keyword_set",
    "partitioned_filter",
    "split_terms",
    "throttled_gather",
]
