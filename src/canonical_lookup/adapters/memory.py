"""In-process object cache partitioned by cache group."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field


@dataclass(slots=True)
class InMemoryObjectCache:
    """Dictionary-backed cache honouring the ``ObjectCache`` port.

    Entries never expire; they live until deleted or their group is flushed.
    """

    _groups: dict[str, dict[int | str, object]] = field(default_factory=dict)
    stats: Counter[str] = field(default_factory=Counter)

    def get(self, key: int | str, group: str) -> object | None:
        bucket = self._groups.get(group, {})
        if key not in bucket:
            self.stats["misses"] += 1
            return None
        self.stats["hits"] += 1
        return bucket[key]

    def set(self, key: int | str, value: object, group: str) -> None:
        self._groups.setdefault(group, {})[key] = value
        self.stats["sets"] += 1

    def delete(self, key: int | str, group: str) -> bool:
        bucket = self._groups.get(group)
        if bucket is None or key not in bucket:
            return False
        del bucket[key]
        self.stats["deletes"] += 1
        return True

    def flush_group(self, group: str) -> None:
        self._groups.pop(group, None)

    def contains(self, key: int | str, group: str) -> bool:
        """Whether the key is cached, without counting a hit or miss. Used by tests."""
        return key in self._groups.get(group, {})
