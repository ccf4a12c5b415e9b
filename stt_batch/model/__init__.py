"""Model runtime access: backend implementations and the call adapter."""

from .adapter import BackendAdapter, RawBackendResult

__all__ = ["BackendAdapter", "RawBackendResult"]
