"""
Collection — Ordered, schema-less records for one entity name.

Records are plain dicts that always carry an "id". Every read hands out
deep copies and every write copies its input, so callers never hold a
reference into collection state.
"""

import copy
import logging
from threading import RLock
from typing import Any, Callable, Hashable, Iterable, Mapping

from fixturedb.errors import DuplicateIdentifierError, ImmutableFieldError
from fixturedb.identity import IdentityManager, SequentialIdentityManager
from fixturedb.observability.logging import get_logger, log_event
from fixturedb.observability.metrics import get_metrics

logger = get_logger("collection")

ID_FIELD = "id"

Record = dict[str, Any]
Query = Mapping[str, Any] | Callable[[Record], bool]

_ALL = object()


def _copy_record(record: Mapping[str, Any]) -> Record:
    if not isinstance(record, Mapping):
        raise TypeError(f"Record must be a mapping, got {type(record).__name__}")
    return copy.deepcopy(dict(record))


def _is_id(target: Any) -> bool:
    # Tuples are hashable ids; only lists mean "several ids"
    return not isinstance(target, (Mapping, list)) and not callable(target)


class Collection:
    """
    Record storage for one named collection.

    Provides:
    - insert / find / find_by / where / all
    - update and remove by id, ids, query or predicate
    - first_or_create (check and insert under one lock)

    Usage:
        users = Collection("users")
        zelda = users.insert({"name": "Zelda"})   # {"id": 0, "name": "Zelda"}
        users.update(zelda["id"], {"hp": 3})
        users.where({"hp": 3})
    """

    def __init__(
        self,
        name: str,
        initial_data: Mapping[str, Any] | Iterable[Mapping[str, Any]] | None = None,
        identity_manager: IdentityManager | None = None,
        log_operations: bool = False,
        scope: str | None = None,
    ):
        """
        Initialize collection.

        Args:
            name: Collection name, kept exactly as given
            initial_data: Record or records to insert immediately
            identity_manager: Id policy instance (default: sequential integers)
            log_operations: Emit a DEBUG line for every mutation
            scope: Label for this collection's log events (default: active LogScope)
        """
        self.name = name
        self.identity_manager = (
            identity_manager if identity_manager is not None else SequentialIdentityManager()
        )
        self.log_operations = log_operations
        self.scope = scope
        self._records: list[Record] = []
        self._lock = RLock()

        if initial_data:
            self.insert(initial_data)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"Collection(name={self.name!r}, records={len(self._records)})"

    # =========================================================================
    # READS
    # =========================================================================

    def all(self) -> list[Record]:
        """Return copies of every record, in collection order."""
        with self._lock:
            return [copy.deepcopy(r) for r in self._records]

    def find(self, ids: Hashable | list[Hashable]) -> Record | list[Record] | None:
        """
        Find records by id.

        A single id returns the record or None. A list of ids returns the
        found records in the order the ids were given; missing ids are skipped.
        """
        with self._lock:
            if isinstance(ids, list):
                found = (self._find_record(i) for i in ids)
                return [copy.deepcopy(r) for r in found if r is not None]
            record = self._find_record(ids)
            return copy.deepcopy(record) if record is not None else None

    def find_by(self, query: Mapping[str, Any]) -> Record | None:
        """Return the first record whose fields equal every pair in query."""
        with self._lock:
            for record in self._records:
                if self._matches(record, query):
                    return copy.deepcopy(record)
            return None

    def where(self, query: Query) -> list[Record]:
        """Return every record matching a field query or predicate."""
        with self._lock:
            return [copy.deepcopy(r) for r in self._find_records_where(query)]

    # =========================================================================
    # WRITES
    # =========================================================================

    def insert(
        self,
        data: Mapping[str, Any] | Iterable[Mapping[str, Any]],
    ) -> Record | list[Record]:
        """
        Insert one record or a batch.

        Records without an id get one from the identity manager. A batch is
        validated as a whole before anything is stored, so a collision
        leaves the collection untouched.

        Returns:
            Copy of the inserted record, or list of copies for a batch

        Raises:
            DuplicateIdentifierError: A supplied id is already in use
            TypeError: A record is not a mapping
        """
        if isinstance(data, Mapping):
            return self._insert_records([data])[0]
        return self._insert_records(list(data))

    def update(self, target: Any, attrs: Mapping[str, Any] | None = None) -> Record | list[Record] | None:
        """
        Merge attrs into matching records in place.

        Forms:
            update(attrs)            every record, returns list
            update(id, attrs)        one record, returns it or None
            update([ids], attrs)     returns list
            update(query, attrs)     field query or predicate, returns list

        Raises:
            ImmutableFieldError: attrs would change a record's id
        """
        if attrs is None:
            attrs, target = target, _ALL
        changes = _copy_record(attrs)

        with self._lock:
            if target is _ALL:
                records = list(self._records)
            elif _is_id(target):
                record = self._find_record(target)
                records = [record] if record is not None else []
            elif isinstance(target, list):
                records = [r for r in (self._find_record(i) for i in target) if r is not None]
            else:
                records = self._find_records_where(target)

            # Validate every target before touching any of them
            if ID_FIELD in changes:
                for record in records:
                    if changes[ID_FIELD] != record[ID_FIELD]:
                        get_metrics().immutable_field_violations.inc()
                        log_event(
                            logger, logging.WARNING, "Rejected id change", self.scope,
                            collection=self.name,
                            id=record[ID_FIELD],
                            attempted=changes[ID_FIELD],
                        )
                        raise ImmutableFieldError(ID_FIELD, self.name, changes[ID_FIELD])
                changes.pop(ID_FIELD)

            for record in records:
                record.update(copy.deepcopy(changes))

            get_metrics().records_updated.inc(len(records))
            if self.log_operations:
                log_event(
                    logger, logging.DEBUG, "Updated records", self.scope,
                    collection=self.name,
                    ids=[r[ID_FIELD] for r in records],
                    fields=sorted(changes),
                )

            updated = [copy.deepcopy(r) for r in records]

        if target is not _ALL and _is_id(target):
            return updated[0] if updated else None
        return updated

    def remove(self, target: Any = _ALL) -> None:
        """
        Delete matching records.

        Forms:
            remove()                 every record, and reset the identity manager
            remove(id)               one record
            remove([ids])            several records
            remove(query)            field query or predicate
        """
        with self._lock:
            if target is _ALL:
                removed = len(self._records)
                self._records.clear()
                self.identity_manager.reset()
            else:
                if _is_id(target):
                    doomed_ids = {target}
                elif isinstance(target, list):
                    doomed_ids = set(target)
                else:
                    doomed_ids = {r[ID_FIELD] for r in self._find_records_where(target)}
                before = len(self._records)
                self._records = [r for r in self._records if r[ID_FIELD] not in doomed_ids]
                removed = before - len(self._records)

            metrics = get_metrics()
            metrics.records_removed.inc(removed)
            metrics.live_records.dec(removed)
            if self.log_operations:
                log_event(
                    logger, logging.DEBUG, "Removed records", self.scope,
                    collection=self.name,
                    count=removed,
                    all=target is _ALL,
                )

    def first_or_create(
        self,
        query: Mapping[str, Any],
        attrs_if_creating: Mapping[str, Any] | None = None,
    ) -> Record:
        """
        Return the first record matching query, creating it if none exists.

        A created record is query merged with attrs_if_creating.
        """
        with self._lock:
            existing = self.find_by(query)
            if existing is not None:
                return existing

            attrs = _copy_record(query)
            if attrs_if_creating:
                attrs.update(_copy_record(attrs_if_creating))
            return self.insert(attrs)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _find_record(self, identifier: Hashable) -> Record | None:
        for record in self._records:
            if record[ID_FIELD] == identifier:
                return record
        return None

    def _find_records_where(self, query: Query) -> list[Record]:
        if callable(query):
            # Predicates see a copy so they cannot mutate stored state
            return [r for r in self._records if query(copy.deepcopy(r))]
        if not isinstance(query, Mapping):
            raise TypeError(
                f"Query must be a mapping or a predicate, got {type(query).__name__}"
            )
        return [r for r in self._records if self._matches(r, query)]

    @staticmethod
    def _matches(record: Record, query: Mapping[str, Any]) -> bool:
        return all(
            key in record and record[key] == value
            for key, value in query.items()
        )

    def _reject_duplicate(self, identifier: Hashable) -> DuplicateIdentifierError:
        get_metrics().identifier_collisions.inc()
        log_event(
            logger, logging.WARNING, "Rejected duplicate id", self.scope,
            collection=self.name,
            id=identifier,
        )
        return DuplicateIdentifierError(identifier, self.name)

    def _insert_records(self, data: list[Mapping[str, Any]]) -> list[Record]:
        records = [_copy_record(d) for d in data]

        with self._lock:
            # Clashes with live records or within the batch are caught here;
            # ids reserved by removed records surface from set() below
            seen: set[Hashable] = set()
            for record in records:
                identifier = record.get(ID_FIELD)
                if identifier is None:
                    continue
                if identifier in seen or self._find_record(identifier) is not None:
                    raise self._reject_duplicate(identifier)
                seen.add(identifier)

            # A single record reserves at most one id, and only on success
            snapshot = copy.deepcopy(self.identity_manager) if len(records) > 1 else None
            try:
                # Reserve explicit ids first so generated ones skip them
                for record in records:
                    if record.get(ID_FIELD) is not None:
                        self.identity_manager.set(record[ID_FIELD])
                for record in records:
                    if record.get(ID_FIELD) is None:
                        record[ID_FIELD] = self.identity_manager.get()
            except DuplicateIdentifierError as e:
                if snapshot is not None:
                    self.identity_manager = snapshot
                raise self._reject_duplicate(e.identifier) from e
            except Exception:
                if snapshot is not None:
                    self.identity_manager = snapshot
                raise
            self._records.extend(records)

            metrics = get_metrics()
            metrics.records_inserted.inc(len(records))
            metrics.live_records.inc(len(records))
            if self.log_operations:
                log_event(
                    logger, logging.DEBUG, "Inserted records", self.scope,
                    collection=self.name,
                    ids=[r[ID_FIELD] for r in records],
                )

            return [copy.deepcopy(r) for r in records]
