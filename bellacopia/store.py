"""Persistent game state: a packed bit-field store and jigsaw progress."""

from __future__ import annotations

import base64
import enum
import logging
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STORE_SIZE_BYTES = 1024
FIELD_SIZE_LIMIT = 16
SAVE_TEXT_LIMIT = 1024
JIGSAW_DEBOUNCE = 50
SAVE_KEY = "save"
JIGSAW_KEY = "jigsaw"
NOT_FOUND = 0xFF

ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789+/"
)
_DIGITS = {char: index for index, char in enumerate(ALPHABET)}

ListenerCallback = Callable[[int, int, int], None]


class Xform(enum.IntFlag):
    """Tile transform bits."""

    NONE = 0
    XREV = 1
    YREV = 2
    SWAP = 4


# Natural-chirality rotations in order: natural, clockwise, 180, deasil.
ROTATIONS = (
    Xform.NONE,
    Xform.SWAP | Xform.YREV,
    Xform.XREV | Xform.YREV,
    Xform.XREV | Xform.SWAP,
)
_ROTATION_OF = {int(xform): index for index, xform in enumerate(ROTATIONS)}


class StoreError(Exception):
    """Raised when persisted state cannot be read or written."""


def encode_save(data: bytes) -> str:
    """Encode store bytes as base64 text, dropping trailing all-zero triples."""
    n = len(data) - len(data) % 3
    while n >= 3 and not any(data[n - 3:n]):
        n -= 3
    return base64.b64encode(bytes(data[:n])).decode("ascii")


def decode_save(text: str) -> bytes:
    """Decode text produced by encode_save."""
    if len(text) % 4:
        raise StoreError(f"encoded length {len(text)} is not a multiple of 4")
    bad = next((char for char in text if char not in _DIGITS), None)
    if bad is not None:
        raise StoreError(f"illegal character {bad!r} in saved game")
    return base64.b64decode(text)


@dataclass
class _Listener:
    listener_id: int
    fld: int
    size: int
    callback: ListenerCallback


def _field_valid(fld: int, size: int) -> bool:
    return 1 <= size <= FIELD_SIZE_LIMIT and fld >= 0 and fld + size <= STORE_SIZE_BYTES << 3


class Store:
    """Bit-addressed game state plus per-map jigsaw piece records.

    ``backend`` is a mutable mapping of persistence keys to text.
    """

    def __init__(self, backend: MutableMapping[str, str], map_count: int) -> None:
        if map_count < 0:
            raise ValueError("map_count must not be negative")
        self._backend = backend
        self._map_count = map_count
        self.reset()

    def reset(self) -> None:
        """Restore the initial state and drop all listeners."""
        self._data = bytearray(STORE_SIZE_BYTES)
        self._data[0] = 0x02  # Field 1 is permanently one.
        self._listeners: list[_Listener] = []
        self._next_listener_id = 1
        self.dirty = False
        self._blank_jigsaw()
        self.jigsaw_dirty = False
        self._jigsaw_debounce = 0

    # General store.

    def get(self, fld: int, size: int) -> int:
        """Read an unsigned field; invalid fields read as zero."""
        if not _field_valid(fld, size):
            return 0
        start, end, shift = fld >> 3, (fld + size + 7) >> 3, fld & 7
        word = int.from_bytes(self._data[start:end], "little")
        return (word >> shift) & ((1 << size) - 1)

    def _put(self, fld: int, size: int, value: int) -> None:
        start, end, shift = fld >> 3, (fld + size + 7) >> 3, fld & 7
        mask = ((1 << size) - 1) << shift
        word = int.from_bytes(self._data[start:end], "little")
        word = (word & ~mask) | (value << shift)
        self._data[start:end] = word.to_bytes(end - start, "little")

    def set(self, fld: int, size: int, value: int) -> bool:
        """Write a field, clamping to its range. Returns True if it changed."""
        if not _field_valid(fld, size) or fld < 2:
            return False
        limit = (1 << size) - 1
        value = min(value, limit) & limit
        if self.get(fld, size) == value:
            return False
        self._put(fld, size, value)
        self.dirty = True
        for listener in reversed(list(self._listeners)):
            if listener.fld == fld and listener.size == size:
                listener.callback(fld, size, value)
            elif not listener.fld and not listener.size:
                listener.callback(fld, size, value)
            elif listener.fld < fld + size and listener.fld + listener.size > fld:
                listener.callback(
                    listener.fld, listener.size, self.get(listener.fld, listener.size)
                )
        return True

    def listen(self, fld: int, size: int, callback: ListenerCallback) -> int:
        """Register a change callback; (0, 0) hears every change. Returns an id."""
        if (fld or size) and not _field_valid(fld, size):
            raise ValueError(f"invalid field ({fld}, {size})")
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners.append(_Listener(listener_id, fld, size, callback))
        return listener_id

    def unlisten(self, listener_id: int) -> None:
        """Remove one listener; unknown ids are ignored."""
        for index, listener in enumerate(self._listeners):
            if listener.listener_id == listener_id:
                del self._listeners[index]
                return

    def unlisten_all(self) -> None:
        self._listeners.clear()

    # Persistence.

    def load(self) -> None:
        """Reset, then restore from the backend. Raises StoreError on bad data."""
        self.reset()
        text = self._backend.get(SAVE_KEY)
        if not text:
            return
        if len(text) > SAVE_TEXT_LIMIT or len(text) % 4:
            raise StoreError(f"saved game has invalid length {len(text)}")
        try:
            decoded = decode_save(text)
        except StoreError:
            self.reset()
            raise
        if len(decoded) > STORE_SIZE_BYTES:
            raise StoreError("saved game is too long")
        self._data[:len(decoded)] = decoded
        if self._data[0] & 3 != 2:
            self.reset()
            raise StoreError("saved game signature mismatch")

    def save(self) -> str:
        """Write the store to the backend and return the encoded text."""
        text = encode_save(self._data)
        if len(text) > SAVE_TEXT_LIMIT:
            raise StoreError("failed to encode saved game")
        logger.debug("Encoded saved game: %r", text)
        self.dirty = False
        self._backend[SAVE_KEY] = text
        return text

    def save_if_dirty(self) -> str | None:
        """Save only if something changed since the last save."""
        if not self.dirty:
            return None
        return self.save()

    # Jigsaw store.

    def _blank_jigsaw(self) -> None:
        size = self._map_count * 3
        self._jraw = bytearray(b"\xff" * size)
        self._jenc = "/" * size

    def jigsaw_load(self) -> None:
        """Restore jigsaw progress; anything malformed blanks it all."""
        if self._map_count < 1:
            return
        size = self._map_count * 3
        text = self._backend.get(JIGSAW_KEY)
        if text is None or len(text) != size:
            logger.warning(
                "Blanking jigsaw due to incorrect encoded length. Expected %d, found %s.",
                size,
                None if text is None else len(text),
            )
            self._blank_jigsaw()
            return
        raw = bytearray()
        for start in range(0, size, 3):
            unit = text[start:start + 3]
            if any(char not in _DIGITS for char in unit):
                logger.warning("Blanking jigsaw due to illegal character in %r.", unit)
                self._blank_jigsaw()
                return
            a, b, c = (_DIGITS[char] for char in unit)
            if a == b == c == 0x3F:
                raw += b"\xff\xff\xff"
                continue
            bits = (a << 12) | (b << 6) | c
            raw += bytes(((bits >> 10) & 0xFF, (bits >> 2) & 0xFF, int(ROTATIONS[c & 3])))
        self._jraw = raw
        self._jenc = text
        self.jigsaw_dirty = False

    def jigsaw_save_if_dirty(self, immediate: bool) -> None:
        """Persist jigsaw progress once the debounce has run out, or now if immediate."""
        if not self.jigsaw_dirty:
            return
        if not immediate and self._jigsaw_debounce > 0:
            self._jigsaw_debounce -= 1
            return
        self.jigsaw_dirty = False
        units = []
        for start in range(0, len(self._jraw), 3):
            x, y, xform = self._jraw[start:start + 3]
            rot = _ROTATION_OF.get(xform)
            if rot is None:
                units.append("///")
                continue
            y = min(y, 0xFE)
            bits = (x << 10) | (y << 2) | rot
            units.append(
                ALPHABET[(bits >> 12) & 0x3F] + ALPHABET[(bits >> 6) & 0x3F] + ALPHABET[bits & 0x3F]
            )
        self._jenc = "".join(units)
        self._backend[JIGSAW_KEY] = self._jenc

    def _jigsaw_offset(self, mapid: int) -> int:
        if mapid < 1 or mapid > self._map_count:
            raise KeyError(mapid)
        return (mapid - 1) * 3

    def jigsaw_get(self, mapid: int) -> tuple[int, int, Xform] | None:
        """Return (x, y, xform) of a found piece, or None if not found yet."""
        offset = self._jigsaw_offset(mapid)
        x, y, xform = self._jraw[offset:offset + 3]
        if xform == NOT_FOUND:
            return None
        return x, y, Xform(xform)

    def jigsaw_set(self, mapid: int, x: int, y: int, xform: int) -> bool:
        """Record a piece position. Returns True if the record changed."""
        offset = self._jigsaw_offset(mapid)
        x = max(0, min(x, 0xFF))
        y = max(0, min(y, 0xFE))
        xform = int(xform)
        if xform not in _ROTATION_OF:
            x = y = xform = NOT_FOUND
        record = bytes((x, y, xform))
        if self._jraw[offset:offset + 3] == record:
            return False
        self._jraw[offset:offset + 3] = record
        self.jigsaw_dirty = True
        self._jigsaw_debounce = JIGSAW_DEBOUNCE
        return True