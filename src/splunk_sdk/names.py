"""Namespace and resource-name values used to address Splunk REST endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar
from urllib.parse import quote

WILDCARD = "-"


@dataclass(frozen=True, slots=True)
class Namespace:
    """Ownership scope of a REST endpoint.

    A namespace without user and app renders as ``services``. Otherwise it
    renders as ``servicesNS/<user>/<app>`` with ``-`` standing in for a
    missing part. The rendered path is not escaped: user and app names are
    taken as they come from the server.

    Examples
    --------
    >>> str(Namespace())
    'services'
    >>> str(Namespace(user="admin", app="search"))
    'servicesNS/admin/search'
    >>> str(Namespace(app="search"))
    'servicesNS/-/search'
    """

    DEFAULT: ClassVar[Namespace]
    ALL: ClassVar[Namespace]

    user: str | None = None
    app: str | None = None

    @property
    def is_default(self) -> bool:
        return self.user is None and self.app is None

    def __str__(self) -> str:
        if self.is_default:
            return "services"
        return f"servicesNS/{self.user or WILDCARD}/{self.app or WILDCARD}"


Namespace.DEFAULT = Namespace()
Namespace.ALL = Namespace(WILDCARD, WILDCARD)


class ResourceName:
    """Path of a REST collection or endpoint below a namespace.

    Each part is percent-escaped on rendering so that entity names holding
    ``/`` or spaces stay a single path segment.
    """

    __slots__ = ("_parts",)

    def __init__(self, *parts: str) -> None:
        if not parts:
            raise ValueError("ResourceName requires at least one part")
        for part in parts:
            if not isinstance(part, str) or not part:
                raise ValueError(f"Invalid resource name part: {part!r}")
        self._parts: tuple[str, ...] = tuple(parts)

    @property
    def parts(self) -> tuple[str, ...]:
        return self._parts

    @property
    def title(self) -> str:
        """Last path part, e.g. ``indexes`` for ``data/indexes``."""
        return self._parts[-1]

    def child(self, *parts: str) -> ResourceName:
        """Return the resource name of an item below this one."""
        return ResourceName(*self._parts, *parts)

    def __str__(self) -> str:
        return "/".join(quote(part, safe="") for part in self._parts)

    def __repr__(self) -> str:
        return f"ResourceName({', '.join(repr(part) for part in self._parts)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceName):
            return NotImplemented
        return self._parts == other._parts

    def __hash__(self) -> int:
        return hash(self._parts)


AUTH_LOGIN = ResourceName("auth", "login")
APPLICATIONS = ResourceName("apps", "local")
INDEXES = ResourceName("data", "indexes")
SAVED_SEARCHES = ResourceName("saved", "searches")
SEARCH_JOBS = ResourceName("search", "jobs")
SERVER_INFO = ResourceName("server", "info")
