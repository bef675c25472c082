from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Optional
from recipe_flow.core.models import RecipeEvent


class KeyValueStore(ABC):
    """String-in, string-out namespace, the shape of browser localStorage."""
    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...
    @abstractmethod
    def set(self, key: str, value: str) -> None: ...
    @abstractmethod
    def remove(self, key: str) -> None: ...


class EventRepo(ABC):
    @abstractmethod
    def append(self, event: RecipeEvent) -> None: ...


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()
