"""Port for the grouped object cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectCache(Protocol):
    """Key/value cache partitioned by group. ``get`` returns ``None`` on a miss."""

    def get(self, key: int | str, group: str) -> object | None: ...

    def set(self, key: int | str, value: object, group: str) -> None: ...

    def delete(self, key: int | str, group: str) -> bool: ...
