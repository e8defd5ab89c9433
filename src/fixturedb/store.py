"""
Store — Registry of named collections.

The store owns every Collection, loads and dumps bulk data, and hands out
two kinds of views per collection:

- CollectionView: a throwaway list of record copies with the collection
  methods attached. Convenient, but costs a full copy on every access.
- InternalCollectionView: the same methods without the copy, for code that
  calls into the store repeatedly (model layers, list factories).
"""

import copy
import logging
from threading import RLock
from typing import Any, Hashable, Iterable, Mapping

from fixturedb.collection import Collection, Query, Record
from fixturedb.config import StoreConfig
from fixturedb.errors import UnknownCollectionError
from fixturedb.identity import IdentityManagerFactory, SequentialIdentityManager
from fixturedb.inflector import singularize
from fixturedb.observability.logging import get_logger, log_event
from fixturedb.observability.metrics import get_metrics

logger = get_logger("store")

APPLICATION_KEY = "application"


# =============================================================================
# VIEWS
# =============================================================================

class _CollectionMethods:
    """Delegates the public collection methods to a live Collection."""

    _collection: Collection

    @property
    def name(self) -> str:
        return self._collection.name

    def insert(self, data: Mapping[str, Any] | Iterable[Mapping[str, Any]]) -> Record | list[Record]:
        return self._collection.insert(data)

    def find(self, ids: Hashable | list[Hashable]) -> Record | list[Record] | None:
        return self._collection.find(ids)

    def find_by(self, query: Mapping[str, Any]) -> Record | None:
        return self._collection.find_by(query)

    def where(self, query: Query) -> list[Record]:
        return self._collection.where(query)

    def update(self, *args: Any) -> Record | list[Record] | None:
        return self._collection.update(*args)

    def remove(self, *args: Any) -> None:
        self._collection.remove(*args)

    def first_or_create(
        self,
        query: Mapping[str, Any],
        attrs_if_creating: Mapping[str, Any] | None = None,
    ) -> Record:
        return self._collection.first_or_create(query, attrs_if_creating)


class CollectionView(_CollectionMethods, list):
    """
    Snapshot of a collection's records plus its methods.

    The list itself is a copy taken when the view was requested; mutating it
    changes nothing. Calling insert/update/remove on it changes the real
    collection, but not this snapshot.
    """

    def __init__(self, collection: Collection):
        super().__init__(collection.all())
        self._collection = collection


class InternalCollectionView(_CollectionMethods):
    """Collection methods only, without materializing the records."""

    def __init__(self, collection: Collection):
        self._collection = collection

    def __len__(self) -> int:
        return len(self._collection)

    def __repr__(self) -> str:
        return f"InternalCollectionView(name={self.name!r})"


# =============================================================================
# STORE
# =============================================================================

class Store:
    """
    In-memory database of named collections.

    Usage:
        store = Store({"users": [{"name": "Zelda"}]})
        store.collection("users").insert({"name": "Link"})
        store["users"]                     # [{"id": 0, ...}, {"id": 1, ...}]
        store.dump()

    Identity managers can be chosen per model:
        store = Store(identity_managers={
            "user": CustomIdentityManager.factory(lambda: uuid4().hex),
            "application": SequentialIdentityManager,
        })
    """

    def __init__(
        self,
        initial_data: Mapping[str, Any] | None = None,
        identity_managers: Mapping[str, IdentityManagerFactory] | None = None,
        config: StoreConfig | None = None,
    ):
        """
        Initialize store.

        Args:
            initial_data: Mapping of collection name to records, loaded at once
            identity_managers: Factories keyed by singular model name or "application"
            config: Store behavior switches
        """
        self.config = config or StoreConfig()
        self._collections: dict[str, Collection] = {}
        self._identity_managers: dict[str, IdentityManagerFactory] = {}
        self._lock = RLock()

        self.register_identity_managers(identity_managers)

        if initial_data:
            self.load_data(initial_data)

    def __contains__(self, name: object) -> bool:
        return name in self._collections

    def __getitem__(self, name: str) -> CollectionView:
        return self.collection(name)

    def __repr__(self) -> str:
        return f"Store(collections={list(self._collections)!r})"

    # =========================================================================
    # BULK OPERATIONS
    # =========================================================================

    def load_data(self, data: Mapping[str, Any]) -> None:
        """Create or feed one collection per key of data."""
        for name, records in data.items():
            self.create_collection(name, copy.deepcopy(records))

    def dump(self) -> dict[str, list[Record]]:
        """Return a snapshot of every collection's records, keyed by name."""
        get_metrics().dumps_taken.inc()
        with self._lock:
            return {name: c.all() for name, c in self._collections.items()}

    def empty_data(self) -> None:
        """Remove all records from every collection, keeping the collections."""
        with self._lock:
            for collection in self._collections.values():
                collection.remove()
        if self.config.log_operations:
            log_event(
                logger, logging.DEBUG, "Emptied store", self.config.scope,
                collections=list(self._collections),
            )

    # =========================================================================
    # COLLECTION LIFECYCLE
    # =========================================================================

    def create_collection(self, name: str, initial_data: Any = None) -> "Store":
        """
        Ensure a collection exists, optionally seeding it.

        Creating a name that already exists only inserts initial_data (if
        given) into the existing collection.

        Returns:
            The store, for chaining
        """
        with self._lock:
            existing = self._collections.get(name)
            if existing is not None:
                if initial_data:
                    existing.insert(initial_data)
                return self

            factory = self.identity_manager_for(name)
            self._collections[name] = Collection(
                name,
                initial_data,
                identity_manager=factory(),
                log_operations=self.config.log_operations,
                scope=self.config.scope,
            )

        get_metrics().collections_created.inc()
        if self.config.log_operations:
            log_event(
                logger, logging.DEBUG, "Created collection", self.config.scope,
                collection=name,
                identity_manager=getattr(factory, "__name__", repr(factory)),
            )
        return self

    def create_collections(self, *names: str) -> None:
        """Create several empty collections."""
        for name in names:
            self.create_collection(name)

    def collection_names(self) -> list[str]:
        """Collection names in creation order."""
        return list(self._collections)

    def collection(self, name: str) -> CollectionView:
        """
        Get a copy view of a collection.

        Raises:
            UnknownCollectionError: Name never created and lazy creation is off
        """
        return CollectionView(self._resolve(name))

    def collection_internal(self, name: str) -> InternalCollectionView:
        """
        Get the method-only view of a collection.

        Raises:
            UnknownCollectionError: Name never created and lazy creation is off
        """
        return InternalCollectionView(self._resolve(name))

    # =========================================================================
    # IDENTITY MANAGERS
    # =========================================================================

    def identity_manager_for(self, name: str) -> IdentityManagerFactory:
        """
        Resolve the identity manager factory for a collection name.

        Priority: singular model name, then "application", then the
        built-in sequential manager.
        """
        return (
            self._identity_managers.get(singularize(name))
            or self._identity_managers.get(APPLICATION_KEY)
            or SequentialIdentityManager
        )

    def register_identity_managers(
        self,
        identity_managers: Mapping[str, IdentityManagerFactory] | None,
    ) -> None:
        """Replace the identity manager mapping used for new collections."""
        for key, factory in (identity_managers or {}).items():
            if not callable(factory):
                raise TypeError(
                    f"Identity manager for '{key}' must be a class or factory, "
                    f"got {type(factory).__name__}"
                )
        self._identity_managers = dict(identity_managers or {})

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _resolve(self, name: str) -> Collection:
        with self._lock:
            collection = self._collections.get(name)
            if collection is not None:
                return collection
            if not self.config.create_missing_collections:
                log_event(
                    logger, logging.WARNING, "Unknown collection requested", self.config.scope,
                    collection=name,
                )
                raise UnknownCollectionError(name)
            self.create_collection(name)
            return self._collections[name]
