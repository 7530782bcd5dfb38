"""
Remote entry API.

Provides the abstract RemoteEntryAPI contract and an aiohttp-based
HttpEntryAPI client for the journal server's REST resource.
"""

from .base import RemoteEntryAPI
from .http import FULL_LISTING_LIMIT, HttpEntryAPI

__all__ = [
    "RemoteEntryAPI",
    "HttpEntryAPI",
    "FULL_LISTING_LIMIT",
]
