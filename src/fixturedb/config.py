"""
Store Configuration — Behavior switches for a Store.

Defaults favor strictness: asking for a collection that was never created
is an error unless lazy creation is switched on.
"""

import os
from typing import Mapping

from pydantic import BaseModel, Field


ENV_PREFIX = "FIXTUREDB_"


class StoreConfig(BaseModel):
    """
    Configuration for a Store.

    Usage:
        store = Store(config=StoreConfig(create_missing_collections=True))

    Or from the environment:
        FIXTUREDB_CREATE_MISSING_COLLECTIONS=true
        store = Store(config=StoreConfig.from_env())
    """

    create_missing_collections: bool = Field(
        default=False,
        description="Create an empty collection when an unknown name is accessed"
    )

    log_operations: bool = Field(
        default=False,
        description="Emit a DEBUG log line for every mutation"
    )

    scope: str | None = Field(
        default=None,
        description="Label stamped on this store's log events (e.g. a test name)"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StoreConfig":
        """
        Build a config from FIXTUREDB_* environment variables.

        Values are coerced by pydantic, so "1", "true" and "yes" all enable
        a flag. Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw.strip()
        return cls(**values)
