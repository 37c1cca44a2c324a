"""Durable store interface and the in-memory implementation."""

from .base import DurableStore
from .memory import InMemoryDurableStore

__all__ = ["DurableStore", "InMemoryDurableStore"]
