"""Error taxonomy.

Not-found outcomes are typed results, not exceptions. Only registry
misconfiguration and content store failures are raised.
"""


class ConfigError(Exception):
    """Registry or configuration inconsistency, fatal at startup."""


class ContentStoreError(Exception):
    """Content store query failed."""


class TransientFetchError(ContentStoreError):
    """Network or service failure that may succeed on retry."""


class UnrecoverableFetchError(ContentStoreError):
    """Content store rejected the query or returned an unusable payload."""
