"""Async client for the Splunk REST management API."""

from .atom import AtomEntry, AtomFeed, AtomMessage
from .auth import AuthenticationManager
from .config import ContextSettings, Credentials
from .context import Context, Endpoint, Scheme
from .entity import Entity, EntityCollection
from .exceptions import (
    AuthenticationError,
    ContextDisposedError,
    EntityCollectionStateError,
    SplunkError,
    SplunkResponseError,
)
from .names import Namespace, ResourceName

__version__ = "0.1.0"

__all__ = [
    "AtomEntry",
    "AtomFeed",
    "AtomMessage",
    "AuthenticationError",
    "AuthenticationManager",
    "Context",
    "ContextDisposedError",
    "ContextSettings",
    "Credentials",
    "Endpoint",
    "Entity",
    "EntityCollection",
    "EntityCollectionStateError",
    "Namespace",
    "ResourceName",
    "Scheme",
    "SplunkError",
    "SplunkResponseError",
    "__version__",
]
