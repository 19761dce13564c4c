"""HTTP clients for the backend endpoint."""

from .backend_client import BackendClient, BackendClientConfig, BackendResponse

__all__ = [
    "BackendClient",
    "BackendClientConfig",
    "BackendResponse",
]
