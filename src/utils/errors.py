"""Custom exception hierarchy for the catalog search backend.

All application exceptions inherit from :class:`CatalogSearchError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "entity_store", "plugin_source", "geometry") caused the
failure.

The hierarchy follows the failure kinds of the search pipeline:

    CatalogSearchError  (base -- catch-all for any catalog search error)
    +-- NotFoundError             (point lookup for an absent id)
    +-- MalformedGeometryError    (WKT text that cannot be parsed)
    +-- UpstreamUnavailableError  (one batch / directory call failed)
    +-- StoreUnavailableError     (every store call of a request failed)
    +-- ParameterParseError       (bad date / bbox / number syntax)
    +-- ConfigurationError        (startup / missing config)

Only :class:`StoreUnavailableError` is meant to reach the HTTP layer.  The
other kinds are handled where they occur: a malformed geometry excludes one
record, an unavailable type contributes an empty map, a bad parameter turns
its filter stage off.
"""


class CatalogSearchError(Exception):
    """Base exception for all catalog search errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    ``__str__`` prefixes the provider name in brackets for log output,
    e.g. ``[entity_store] Batch retrieve failed for DISTRIBUTION``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Lookup errors
# ---------------------------------------------------------------------------

class NotFoundError(CatalogSearchError):
    """Raised by point lookups when the requested id does not exist.

    Batch lookups never raise this: ids missing from a batch response are
    simply absent from the snapshot.
    """

    def __init__(
        self,
        message: str = "Record not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MalformedGeometryError(CatalogSearchError):
    """Raised when WKT text cannot be parsed into a geometry."""

    def __init__(
        self,
        message: str = "Malformed WKT geometry",
        provider_name: str | None = "geometry",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Store / collaborator availability
# ---------------------------------------------------------------------------

class UpstreamUnavailableError(CatalogSearchError):
    """Raised when a single call to an external collaborator fails.

    The prefetch cache catches this per entity type and degrades that
    type to an empty result.
    """

    def __init__(
        self,
        message: str = "Upstream service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreUnavailableError(CatalogSearchError):
    """Raised when the entity store could not serve a request at all.

    This is the only request-level failure: it means the root retrieval
    failed, or every batch call of the prefetch failed.
    """

    def __init__(
        self,
        message: str = "Entity store is unavailable",
        provider_name: str | None = "entity_store",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Input / configuration errors
# ---------------------------------------------------------------------------

class ParameterParseError(CatalogSearchError):
    """Raised when a query parameter has invalid syntax.

    :meth:`FilterCriteria.from_params` catches this per field, logs it and
    leaves the field unset so the matching stage stays inactive.
    """

    def __init__(
        self,
        message: str = "Invalid query parameter",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(CatalogSearchError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
