class SearchError(Exception):
    """Base class of errors surfaced to the caller of a search."""


class ValidationFailure(SearchError):
    """Request rejected before any backend call, e.g. an empty query."""


class BackendFailure(SearchError):
    """The search backend errored or timed out. No partial results are returned."""
