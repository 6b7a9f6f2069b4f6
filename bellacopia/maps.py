"""Registry of world maps, arranged in planes and addressed by position."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .res import TABLE_SIZE, ResourceTable

logger = logging.getLogger(__name__)

MAP_WIDTH = 20
MAP_HEIGHT = 12
MAP_CELLS = MAP_WIDTH * MAP_HEIGHT
PLANE_LIMIT = 256

_DEFAULT_TABLE = bytes(TABLE_SIZE)


class MapOob(enum.IntEnum):
    """How a plane answers for positions beyond its edges."""

    NULL = 1
    LOOP = 2
    REPEAT = 3
    FARLOOP = 4


class MapError(Exception):
    """Raised when the set of maps is inconsistent."""


def apply_oob(v: int, limit: int, mode: int) -> int:
    """Bring a one-dimensional position into range under an out-of-bounds strategy."""
    if limit < 1:
        return v
    if mode == MapOob.LOOP:
        return v % limit
    if mode == MapOob.REPEAT:
        return max(0, min(v, limit - 1))
    if mode == MapOob.FARLOOP:
        twice = limit << 1
        half = limit >> 1
        v = (v + half) % twice - half
        return max(0, min(v, limit - 1))
    return v


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // b
    return quotient if a >= 0 else -quotient


@dataclass(frozen=True)
class MapSpec:
    """A decoded map resource: position, tiles and the commands the registry reads."""

    rid: int
    x: int
    y: int
    z: int | None
    tiles: bytes
    image_id: int = 0
    song_id: int = -1
    oob: tuple[int, int] | None = None
    parent: int = 0
    commands: tuple = ()


@dataclass
class Map:
    """One screenful of tiles. Empty slots have rid 0 and no read-only tiles."""

    x: int = 0
    y: int = 0
    z: int = 0
    rid: int = 0
    image_id: int = 0
    song_id: int = -1
    tiles: bytearray = field(default_factory=lambda: bytearray(MAP_CELLS))
    ro: bytes | None = None
    commands: tuple = ()
    physics: bytes = _DEFAULT_TABLE
    jigctab: bytes = _DEFAULT_TABLE
    parent: int = 0


@dataclass
class Plane:
    """A rectangle of maps sharing one Z index, stored left-to-right, top-to-bottom."""

    x: int = 0
    y: int = 0
    w: int = 0
    h: int = 0
    oobx: int = 0
    ooby: int = 0
    maps: list[Map] = field(default_factory=list)
    parent: int = 0

    def at(self, col: int, row: int) -> Map:
        """Map at a plane-relative cell, which must be in range."""
        return self.maps[row * self.w + col]


class MapRegistry:
    """Every map in the world, resident at a fixed position in its plane."""

    def __init__(self, specs: Iterable[MapSpec], resources: ResourceTable | None = None) -> None:
        self._resources = resources
        self._planes: list[Plane] = []
        self._by_rid: dict[int, tuple[int, int, int]] = {}
        ordered = sorted(specs, key=lambda spec: spec.rid)

        for spec in ordered:
            if spec.z is None or spec.z < 0:
                raise MapError(f"map:{spec.rid} didn't declare its position")
            if spec.z >= PLANE_LIMIT:
                raise MapError(f"map:{spec.rid} has invalid plane {spec.z}")
            while len(self._planes) <= spec.z:
                self._planes.append(Plane())
            plane = self._planes[spec.z]
            if plane.w:
                if spec.x < plane.x:
                    plane.w += plane.x - spec.x
                    plane.x = spec.x
                elif spec.x >= plane.x + plane.w:
                    plane.w = spec.x - plane.x + 1
                if spec.y < plane.y:
                    plane.h += plane.y - spec.y
                    plane.y = spec.y
                elif spec.y >= plane.y + plane.h:
                    plane.h = spec.y - plane.y + 1
            else:
                plane.x, plane.y, plane.w, plane.h = spec.x, spec.y, 1, 1

        for plane in self._planes:
            plane.maps = [Map() for _ in range(plane.w * plane.h)]

        for spec in ordered:
            self._install(spec)

        for plane in self._planes:
            if not plane.oobx:
                plane.oobx = plane.ooby = MapOob.NULL
            if plane.parent:
                for map_ in plane.maps:
                    map_.parent = plane.parent

    def _install(self, spec: MapSpec) -> None:
        rid = spec.rid
        if len(spec.tiles) != MAP_CELLS:
            raise MapError(
                f"map:{rid} has {len(spec.tiles)} cells, only {MAP_WIDTH}x{MAP_HEIGHT} is allowed"
            )
        oobx = ooby = 0
        if spec.oob is not None:
            oobx, ooby = spec.oob
            if not oobx or not ooby:
                raise MapError(f"map:{rid} invalid oob ({oobx},{ooby})")
        plane = self._planes[spec.z]
        map_ = plane.at(spec.x - plane.x, spec.y - plane.y)
        if map_.rid:
            raise MapError(
                f"map:{map_.rid} and map:{rid} both claim position ({spec.x},{spec.y},{spec.z})"
            )
        if oobx:
            if plane.oobx:
                if (oobx, ooby) != (plane.oobx, plane.ooby):
                    raise MapError(
                        f"Conflicting OOB strategy for plane {spec.z}: ({oobx},{ooby}) "
                        f"vs ({plane.oobx},{plane.ooby}), map:{rid} is one"
                    )
            else:
                plane.oobx, plane.ooby = oobx, ooby
        if spec.parent:
            if plane.parent:
                if plane.parent != spec.parent:
                    raise MapError(
                        f"Conflicting map parents for plane {spec.z}: map:{spec.parent} "
                        f"(from map:{rid}) vs map:{plane.parent}"
                    )
            else:
                plane.parent = spec.parent

        map_.x, map_.y, map_.z = spec.x, spec.y, spec.z
        map_.rid = rid
        map_.image_id = spec.image_id
        map_.song_id = spec.song_id
        map_.ro = bytes(spec.tiles)
        map_.tiles = bytearray(spec.tiles)
        map_.commands = tuple(spec.commands)
        if self._resources is not None:
            map_.physics = self._resources.physics_table(spec.image_id)
            map_.jigctab = self._resources.jigctab_table(spec.image_id)
        self._by_rid[rid] = (spec.x, spec.y, spec.z)

    def reset(self) -> None:
        """Restore every map's tiles to their pristine state."""
        for plane in self._planes:
            for map_ in plane.maps:
                if map_.ro is not None:
                    map_.tiles[:] = map_.ro

    def by_position(self, x: int, y: int, z: int) -> Map | None:
        """Map at a world position, applying the plane's out-of-bounds strategy."""
        if not 0 <= z < len(self._planes):
            return None
        plane = self._planes[z]
        if plane.w < 1 or plane.h < 1:
            return None
        col = apply_oob(x - plane.x, plane.w, plane.oobx)
        row = apply_oob(y - plane.y, plane.h, plane.ooby)
        if not (0 <= col < plane.w and 0 <= row < plane.h):
            return None
        return plane.at(col, row)

    def by_id(self, rid: int) -> Map | None:
        position = self._by_rid.get(rid)
        if position is None:
            return None
        return self.by_position(*position)

    def plane(self, z: int) -> Plane | None:
        if not 0 <= z < len(self._planes):
            return None
        return self._planes[z]

    def position_from_sprite(self, sx: float, sy: float, z: int) -> tuple[int, int, Map | None]:
        """Plane position (longitude, latitude) and map for a point in world meters."""
        if not 0 <= z < len(self._planes):
            return 0, 0, None
        plane = self._planes[z]
        if plane.w < 1 or plane.h < 1:
            return 0, 0, None
        cellx = int(sx) - (1 if sx < 0.0 else 0)
        celly = int(sy) - (1 if sy < 0.0 else 0)
        lng = _trunc_div(cellx, MAP_WIDTH) - (1 if cellx < 0 else 0)
        lat = _trunc_div(celly, MAP_HEIGHT) - (1 if celly < 0 else 0)
        lng = apply_oob(lng - plane.x, plane.w, plane.oobx)
        lat = apply_oob(lat - plane.y, plane.h, plane.ooby)
        px, py = lng + plane.x, lat + plane.y
        if not (0 <= lng < plane.w and 0 <= lat < plane.h):
            return px, py, None
        return px, py, plane.at(lng, lat)