"""Control-plane API access."""

from .client import CloudClient, create_http_client

__all__ = ["CloudClient", "create_http_client"]
