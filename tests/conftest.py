"""Shared fixtures for fixturedb tests."""

import pytest

from fixturedb import Collection, DuplicateIdentifierError, Store
from fixturedb.observability import reset_metrics, set_scope


@pytest.fixture(autouse=True)
def clean_observability():
    """Start every test with zeroed metrics and no scope label."""
    reset_metrics()
    set_scope(None)
    yield
    reset_metrics()


@pytest.fixture
def users() -> Collection:
    """Collection seeded with three users."""
    return Collection("users", [
        {"name": "Zelda", "role": "princess"},
        {"name": "Link", "role": "hero"},
        {"name": "Ganon", "role": "villain"},
    ])


@pytest.fixture
def store() -> Store:
    """Store with users and empty posts."""
    store = Store({
        "users": [
            {"name": "Zelda", "age": 17},
            {"name": "Link", "age": 17},
        ],
    })
    store.create_collection("posts")
    return store


class MinimalIdentityManager:
    """Manager implementing only get/set/reset, counting up from 1000."""
    
    def __init__(self):
        self.reserved = []
        self.next_value = 1000
    
    def get(self):
        self.next_value += 1
        self.reserved.append(self.next_value)
        return self.next_value
    
    def set(self, identifier):
        if identifier in self.reserved:
            raise DuplicateIdentifierError(identifier)
        self.reserved.append(identifier)
    
    def reset(self):
        self.reserved = []
        self.next_value = 1000


@pytest.fixture
def minimal_manager_cls() -> type:
    """Identity manager class without __contains__."""
    return MinimalIdentityManager
