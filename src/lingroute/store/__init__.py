"""Content store access."""

from lingroute.store.client import ContentFetcher, ContentStoreClient, create_http_client

__all__ = ["ContentFetcher", "ContentStoreClient", "create_http_client"]
