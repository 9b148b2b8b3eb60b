"""
Key-value storage abstraction.

'KeyValueStorage' is the pluggable persistence backend of the client: a flat,
synchronous mapping from string keys to JSON-serialisable values. Concrete
implementations ('InMemoryKeyValueStorage', 'JSONFileKeyValueStorage') are
interchangeable at construction time.

'load_json' and 'save_json' wrap the raw primitive with the client's
degradation policy: a read that fails, or a stored value that no longer
validates against the expected type, is logged and replaced by the default.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, TypeVar

from loguru import logger
from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")


class KeyValueStorage(ABC):
    """Abstract string-keyed store for JSON-serialisable values."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under 'key', or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove 'key'. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> Iterator[str]:
        pass

    def remove_prefix(self, prefix: str) -> list[str]:
        """Remove every key starting with 'prefix' and return the removed keys."""
        keys_to_remove = [key for key in self.keys() if key.startswith(prefix)]
        for key in keys_to_remove:
            self.remove(key)
        return keys_to_remove


def load_json(storage: KeyValueStorage, key: str, type_: Any, default: T) -> T:
    try:
        raw = storage.get(key)
    except (OSError, ValueError) as exc:
        logger.warning(f"Could not read {key!r} from storage: {exc}")
        return default
    if raw is None:
        return default
    try:
        return TypeAdapter(type_).validate_python(raw)
    except ValidationError as exc:
        logger.warning(f"Discarding invalid value stored under {key!r}: {exc}")
        return default


def save_json(storage: KeyValueStorage, key: str, value: Any, type_: Any) -> None:
    storage.set(key, TypeAdapter(type_).dump_python(value, mode="json"))
