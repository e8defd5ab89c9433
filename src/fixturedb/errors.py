"""
Errors — Exception taxonomy for fixturedb.

Absence is never an error: lookups that match nothing return None or [].
"""

from typing import Any, Hashable


class FixtureDBError(Exception):
    """Base class for all fixturedb errors."""
    pass


class DuplicateIdentifierError(FixtureDBError):
    """Raised when an id is already in use within a collection."""
    
    def __init__(self, identifier: Hashable, collection: str | None = None):
        self.identifier = identifier
        self.collection = collection
        where = f" in collection '{collection}'" if collection else ""
        super().__init__(
            f"Attempting to use the id {identifier!r}{where}, "
            "but it has already been used"
        )


class ImmutableFieldError(FixtureDBError):
    """Raised when an update tries to change a record's id."""
    
    def __init__(self, field: str, collection: str | None = None, value: Any = None):
        self.field = field
        self.collection = collection
        self.value = value
        where = f" in collection '{collection}'" if collection else ""
        super().__init__(f"Field '{field}' cannot be updated{where}")


class UnknownCollectionError(FixtureDBError, KeyError):
    """Raised when a view is requested for a collection that was never created."""
    
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Collection not found: {name}")
    
    def __str__(self) -> str:
        return self.args[0]


class IdentityExhaustedError(FixtureDBError):
    """Raised when a custom id generator keeps producing used ids."""
    pass
