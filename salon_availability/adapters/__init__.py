"""
Adapters layer - Collaborator integrations (JSON file store, platform backend).
"""

from .http_client import BackendClient
from .json_store import JsonScheduleStore

__all__ = ["BackendClient", "JsonScheduleStore"]
