"""
fixturedb — In-memory record store for test fixtures and prototypes.

Provides:
- Store: registry of named collections with bulk load/dump
- Collection: ordered, schema-less records with auto-assigned ids
- Identity managers: pluggable id policies per model
"""

__version__ = "0.1.0"

from fixturedb.errors import (
    FixtureDBError,
    DuplicateIdentifierError,
    ImmutableFieldError,
    UnknownCollectionError,
    IdentityExhaustedError,
)
from fixturedb.identity import (
    IdentityManager,
    SequentialIdentityManager,
    CustomIdentityManager,
)
from fixturedb.collection import Collection
from fixturedb.config import StoreConfig
from fixturedb.store import (
    Store,
    CollectionView,
    InternalCollectionView,
)
from fixturedb.inflector import singularize

__all__ = [
    "__version__",
    # Errors
    "FixtureDBError",
    "DuplicateIdentifierError",
    "ImmutableFieldError",
    "UnknownCollectionError",
    "IdentityExhaustedError",
    # Identity
    "IdentityManager",
    "SequentialIdentityManager",
    "CustomIdentityManager",
    # Storage
    "Collection",
    "Store",
    "CollectionView",
    "InternalCollectionView",
    "StoreConfig",
    # Helpers
    "singularize",
]
