"""
Adapters layer - External data sources.
"""

from .json_store import JsonDataStore

__all__ = ["JsonDataStore"]
