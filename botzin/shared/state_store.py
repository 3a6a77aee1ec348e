# START OF FILE: botzin/shared/state_store.py

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, Tuple


class StateStore(ABC):
    """
    Key/value store for live conversational state (contexts, response times,
    per-user counters). Implement this interface to move the state out of process.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def items(self) -> Iterator[Tuple[str, Any]]:
        ...


class InMemoryStateStore(StateStore):
    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)

# END OF FILE: botzin/shared/state_store.py
