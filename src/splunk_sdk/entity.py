"""Entities and refreshable entity collections backed by Atom feeds."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar, overload

from loguru import logger
from lxml import etree

from .atom import AtomEntry, AtomFeed
from .exceptions import EntityCollectionStateError
from .names import Namespace, ResourceName

if TYPE_CHECKING:
    from .context import Context

TEntity = TypeVar("TEntity")

EntityFactory = Callable[["Context", ResourceName, AtomEntry], TEntity]
FeedParser = Callable[["Context", ResourceName, etree._Element], AtomFeed]


class Entity:
    """A single Splunk resource materialized from one Atom entry."""

    __slots__ = ("_context", "_resource_name", "_entry")

    def __init__(self, context: Context, resource_name: ResourceName, entry: AtomEntry) -> None:
        self._context = context
        self._resource_name = resource_name
        self._entry = entry

    @classmethod
    def from_entry(cls, context: Context, resource_name: ResourceName, entry: AtomEntry) -> Entity:
        return cls(context, resource_name, entry)

    @property
    def context(self) -> Context:
        return self._context

    @property
    def resource_name(self) -> ResourceName:
        """Name of the collection this entity was read from."""
        return self._resource_name

    @property
    def entry(self) -> AtomEntry:
        return self._entry

    @property
    def name(self) -> str:
        return self._entry.title

    @property
    def id(self) -> str:
        return self._entry.id

    @property
    def updated(self) -> str:
        return self._entry.updated

    @property
    def links(self) -> dict[str, str]:
        return self._entry.links

    @property
    def content(self) -> dict[str, Any]:
        return self._entry.content

    def get(self, key: str, default: Any = None) -> Any:
        return self._entry.content.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._entry.content[key]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._resource_name.title}/{self.name})"


@dataclass(frozen=True, slots=True)
class _Snapshot(Generic[TEntity]):
    feed: AtomFeed
    entities: tuple[TEntity, ...]


class EntityCollection(Sequence[TEntity], Generic[TEntity]):
    """
    Read-only, refreshable list of the entities in a Splunk collection.

    A new collection holds no data. Call `update()` to fetch the collection
    feed; until the first update succeeds, `len()`, indexing, iteration and
    `feed` raise `EntityCollectionStateError`. Each update replaces the feed
    and the entities together. Concurrent updates on one collection run one
    after another.

    Parameters
    ----------
    context : Context
        Context used to fetch the feed; not closed by the collection
    namespace : Namespace
        Namespace of the collection
    name : ResourceName
        Resource name of the collection, e.g. ``data/indexes``
    args : mapping or iterable of pairs, optional
        Query parameters; copied into `parameters` at construction
    entity_factory : callable
        Builds one entity from ``(context, name, entry)``
    feed_parser : callable
        Builds an `AtomFeed` from ``(context, name, document)``

    Examples
    --------
    >>> indexes = EntityCollection(context, Namespace(), INDEXES, {"count": 0})
    >>> await indexes.update()
    >>> [index.name for index in indexes]
    ['_audit', '_internal', 'main']
    """

    def __init__(
        self,
        context: Context,
        namespace: Namespace,
        name: ResourceName,
        args: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        *,
        entity_factory: EntityFactory[TEntity] = Entity.from_entry,  # type: ignore[assignment]
        feed_parser: FeedParser = AtomFeed.parse,
    ) -> None:
        self._context = context
        self._namespace = namespace
        self._name = name
        self._parameters: Mapping[str, Any] | None = (
            MappingProxyType(dict(args)) if args is not None else None
        )
        self._entity_factory = entity_factory
        self._feed_parser = feed_parser
        self._snapshot: _Snapshot[TEntity] | None = None
        self._update_lock = asyncio.Lock()

    # ---------------- properties ----------------

    @property
    def context(self) -> Context:
        return self._context

    @property
    def namespace(self) -> Namespace:
        return self._namespace

    @property
    def name(self) -> ResourceName:
        return self._name

    @property
    def parameters(self) -> Mapping[str, Any] | None:
        """Query parameters fixed at construction, or ``None``."""
        return self._parameters

    @property
    def is_populated(self) -> bool:
        return self._snapshot is not None

    @property
    def feed(self) -> AtomFeed:
        """Feed of the last successful update."""
        return self._require_snapshot().feed

    # ---------------- sequence protocol ----------------

    def __len__(self) -> int:
        return len(self._require_snapshot().entities)

    @overload
    def __getitem__(self, index: int) -> TEntity: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[TEntity, ...]: ...

    def __getitem__(self, index: int | slice) -> TEntity | tuple[TEntity, ...]:
        return self._require_snapshot().entities[index]

    def __iter__(self) -> Iterator[TEntity]:
        return iter(self._require_snapshot().entities)

    # ---------------- refresh ----------------

    async def update(self) -> None:
        """Fetch the collection feed and replace the current entities.

        Errors from fetching, parsing, or building entities propagate as
        raised, and the previous contents stay in place.
        """
        async with self._update_lock:
            document = await self._context.get_document(
                self._namespace, self._name, self._parameters
            )
            feed = self._feed_parser(self._context, self._name, document)
            entities = tuple(
                self._entity_factory(self._context, self._name, entry) for entry in feed.entries
            )
            self._snapshot = _Snapshot(feed, entities)
        logger.debug(f"Updated {self._namespace}/{self._name}: {len(entities)} entities")

    def _require_snapshot(self) -> _Snapshot[TEntity]:
        snapshot = self._snapshot
        if snapshot is None:
            raise EntityCollectionStateError(
                f"Collection {self._name} has not been updated; call update() first"
            )
        return snapshot

    def __repr__(self) -> str:
        state = f"{len(self._snapshot.entities)} entities" if self._snapshot else "not updated"
        return f"EntityCollection({self._namespace}/{self._name}, {state})"
