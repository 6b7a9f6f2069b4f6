"""Resource table of contents and per-tilesheet lookup tables."""

from __future__ import annotations

import bisect
import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TABLE_SIZE = 256
_DEFAULT_TABLE = bytes(TABLE_SIZE)


class ResourceType(enum.IntEnum):
    """Resource type ids, in table-of-contents order."""

    METADATA = 1
    CODE = 2
    STRINGS = 3
    IMAGE = 4
    SOUND = 5
    SONG = 6
    MAP = 16
    SPRITE = 17
    TILESHEET = 18
    DECALSHEET = 19


_TOC_TYPES = frozenset({ResourceType.MAP, ResourceType.SPRITE, ResourceType.DECALSHEET})
_IGNORED_TYPES = frozenset(
    {
        ResourceType.METADATA,
        ResourceType.CODE,
        ResourceType.STRINGS,
        ResourceType.IMAGE,
        ResourceType.SOUND,
        ResourceType.SONG,
    }
)


@dataclass(frozen=True)
class Resource:
    tid: int
    rid: int
    data: bytes


def _expand_table(table: bytes) -> bytes:
    table = bytes(table)
    if len(table) > TABLE_SIZE:
        raise ValueError(f"table has {len(table)} entries, limit is {TABLE_SIZE}")
    return table.ljust(TABLE_SIZE, b"\0")


class ResourceTable:
    """Sorted table of kept resources, plus physics and jigctab tables by tilesheet."""

    def __init__(self) -> None:
        self._keys: list[tuple[int, int]] = []
        self._resources: list[Resource] = []
        self._physics: dict[int, bytes] = {}
        self._jigctab: dict[int, bytes] = {}

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def add(self, tid: int, rid: int, data: bytes) -> bool:
        """Offer a resource. Returns True if it was kept in the table."""
        if tid in _TOC_TYPES:
            key = (int(tid), rid)
            index = bisect.bisect_left(self._keys, key)
            resource = Resource(int(tid), rid, bytes(data))
            if index < len(self._keys) and self._keys[index] == key:
                self._resources[index] = resource
            else:
                self._keys.insert(index, key)
                self._resources.insert(index, resource)
            return True
        if tid == ResourceType.TILESHEET:
            raise ValueError("tilesheets must be added with add_tilesheet")
        if tid not in _IGNORED_TYPES:
            logger.warning("Unexpected resource type %d (rid %d, c=%d)", tid, rid, len(data))
        return False

    def add_tilesheet(self, rid: int, physics: bytes, jigctab: bytes) -> None:
        """Register a tilesheet's physics and jigctab tables (up to 256 entries each)."""
        physics_table = _expand_table(physics)
        jigctab_table = _expand_table(jigctab)
        self._physics[rid] = physics_table
        self._jigctab[rid] = jigctab_table

    def search(self, tid: int, rid: int) -> int | None:
        """Index of (tid, rid) in the table, or None."""
        key = (int(tid), rid)
        index = bisect.bisect_left(self._keys, key)
        if index < len(self._keys) and self._keys[index] == key:
            return index
        return None

    def get(self, tid: int, rid: int) -> bytes | None:
        index = self.search(tid, rid)
        if index is None:
            return None
        return self._resources[index].data

    def highest_rid(self, tid: int) -> int:
        """Largest rid of the given type, or 0 if there is none."""
        index = bisect.bisect_left(self._keys, (int(tid) + 1,)) - 1
        if index >= 0 and self._keys[index][0] == tid:
            return self._keys[index][1]
        return 0

    def physics_table(self, tilesheet_id: int) -> bytes:
        """256 physics values for a tilesheet; all zero if unknown."""
        return self._physics.get(tilesheet_id, _DEFAULT_TABLE)

    def jigctab_table(self, tilesheet_id: int) -> bytes:
        """256 jigsaw colour values for a tilesheet; all zero if unknown."""
        return self._jigctab.get(tilesheet_id, _DEFAULT_TABLE)