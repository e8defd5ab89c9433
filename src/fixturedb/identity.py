"""
Identity Managers — Issue and track unique ids within a collection.

Every collection owns one identity manager. The store picks the manager
class per model name, so different models can use different id policies.
"""

from typing import Callable, Hashable, Protocol, runtime_checkable

from fixturedb.errors import DuplicateIdentifierError, IdentityExhaustedError


@runtime_checkable
class IdentityManager(Protocol):
    """
    Protocol for id policies.

    Issued and registered ids stay reserved until reset(), so a removed
    record's id is never handed out again while the collection holds data.
    Collections snapshot the manager with copy.deepcopy before a batch and
    restore the snapshot if the batch fails, so implementations must be
    deep-copyable.
    """

    def get(self) -> Hashable:
        """Issue and reserve the next unused id."""
        ...

    def set(self, identifier: Hashable) -> None:
        """Reserve an externally supplied id. Raises if already reserved."""
        ...

    def reset(self) -> None:
        """Forget every reserved id."""
        ...


class SequentialIdentityManager:
    """
    Default policy: integers 0, 1, 2, ...

    Ids registered through set() are skipped when the counter reaches them.
    """

    def __init__(self) -> None:
        self._next_id = 0
        self._ids: set[Hashable] = set()

    def get(self) -> int:
        while self._next_id in self._ids:
            self._next_id += 1
        identifier = self._next_id
        self._ids.add(identifier)
        self._next_id += 1
        return identifier

    def set(self, identifier: Hashable) -> None:
        if identifier in self._ids:
            raise DuplicateIdentifierError(identifier)
        self._ids.add(identifier)

    def reset(self) -> None:
        self._next_id = 0
        self._ids.clear()

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._ids


class CustomIdentityManager:
    """
    Id policy backed by a caller-supplied generator.

    Usage:
        manager = CustomIdentityManager(lambda: uuid4().hex)
        store = Store(identity_managers={
            "user": CustomIdentityManager.factory(lambda: uuid4().hex),
        })
    """

    def __init__(
        self,
        generator: Callable[[], Hashable],
        max_attempts: int = 100,
    ):
        """
        Initialize custom identity manager.

        Args:
            generator: Zero-argument callable producing candidate ids
            max_attempts: Draws allowed before giving up on a fresh id
        """
        self._generator = generator
        self.max_attempts = max_attempts
        self._ids: set[Hashable] = set()

    @classmethod
    def factory(
        cls,
        generator: Callable[[], Hashable],
        max_attempts: int = 100,
    ) -> Callable[[], "CustomIdentityManager"]:
        """Build a zero-argument factory for registration on a Store."""
        def create() -> "CustomIdentityManager":
            return cls(generator, max_attempts=max_attempts)
        return create

    def get(self) -> Hashable:
        for _ in range(self.max_attempts):
            candidate = self._generator()
            if candidate not in self._ids:
                self._ids.add(candidate)
                return candidate
        raise IdentityExhaustedError(
            f"Generator produced no unused id after {self.max_attempts} attempts"
        )

    def set(self, identifier: Hashable) -> None:
        if identifier in self._ids:
            raise DuplicateIdentifierError(identifier)
        self._ids.add(identifier)

    def reset(self) -> None:
        self._ids.clear()

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._ids


IdentityManagerFactory = Callable[[], IdentityManager]
