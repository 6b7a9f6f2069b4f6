import pytest

from bellacopia.store import (
    JIGSAW_DEBOUNCE,
    JIGSAW_KEY,
    SAVE_KEY,
    Store,
    StoreError,
    Xform,
    decode_save,
    encode_save,
)


@pytest.fixture
def backend():
    return {}


@pytest.fixture
def store(backend):
    return Store(backend, 3)


def test_initial_fields(store):
    assert store.get(1, 1) == 1
    assert store.get(0, 1) == 0


def test_readonly_fields(store):
    assert store.set(0, 1, 1) is False
    assert store.set(1, 1, 0) is False
    assert store.get(1, 1) == 1


def test_multibit_roundtrip_across_bytes(store):
    assert store.set(13, 10, 700) is True
    assert store.get(13, 10) == 700
    assert store.set(13, 10, 700) is False


def test_single_bit(store):
    assert store.set(40, 1, 1) is True
    assert store.get(40, 1) == 1
    assert store.dirty is True
    assert store.set(40, 1, 0) is True
    assert store.get(40, 1) == 0


def test_clamp(store):
    store.set(20, 4, 99)
    assert store.get(20, 4) == 15


def test_neighbors_untouched(store):
    store.set(16, 8, 255)
    assert store.get(15, 1) == 0
    assert store.get(24, 1) == 0
    assert store.get(16, 8) == 255


def test_invalid_fields_read_zero(store):
    assert store.get(8191, 2) == 0
    assert store.get(-1, 1) == 0
    assert store.get(8, 17) == 0
    assert store.set(8191, 2, 1) is False


def test_listeners(store):
    calls = []
    store.listen(8, 8, lambda f, s, v: calls.append(("exact", f, s, v)))
    store.listen(0, 0, lambda f, s, v: calls.append(("all", f, s, v)))
    store.set(8, 8, 42)
    assert ("exact", 8, 8, 42) in calls
    assert ("all", 8, 8, 42) in calls


def test_overlap_listener_reads_whole_field(store):
    calls = []
    store.listen(8, 8, lambda f, s, v: calls.append((f, s, v)))
    store.set(12, 4, 5)
    assert calls == [(8, 8, store.get(8, 8))]


def test_listen_invalid(store):
    with pytest.raises(ValueError):
        store.listen(8190, 4, lambda f, s, v: None)
    with pytest.raises(ValueError):
        store.listen(8, 0, lambda f, s, v: None)


def test_unlisten(store):
    calls = []
    lid = store.listen(8, 8, lambda f, s, v: calls.append(v))
    store.unlisten(lid)
    store.set(8, 8, 3)
    assert calls == []


def test_unlisten_all(store):
    calls = []
    store.listen(0, 0, lambda f, s, v: calls.append(v))
    store.unlisten_all()
    store.set(8, 8, 3)
    assert calls == []


def test_encode_pinned():
    assert encode_save(bytes([2, 0, 0])) == "AgAA"
    assert decode_save("AgAA") == bytes([2, 0, 0])


def test_encode_drops_trailing_zeros():
    assert encode_save(bytes(9)) == ""
    assert decode_save(encode_save(bytes([1, 2, 3, 0, 0, 0]))) == bytes([1, 2, 3])


def test_decode_errors():
    with pytest.raises(StoreError):
        decode_save("abc")
    with pytest.raises(StoreError):
        decode_save("ab*d")


def test_save_load_roundtrip(backend, store):
    store.set(100, 8, 42)
    text = store.save()
    assert backend[SAVE_KEY] == text
    assert store.dirty is False
    other = Store(backend, 3)
    other.load()
    assert other.get(100, 8) == 42
    assert other.get(1, 1) == 1


def test_save_if_dirty(backend, store):
    assert store.save_if_dirty() is None
    assert SAVE_KEY not in backend
    store.set(50, 3, 5)
    assert store.save_if_dirty() == backend[SAVE_KEY]


def test_load_missing_is_fresh(store):
    store.set(30, 2, 3)
    store.load()
    assert store.get(30, 2) == 0


@pytest.mark.parametrize("text", ["AgA", "Ag*A", "AAAA"])
def test_load_rejects_bad_data(backend, text):
    backend[SAVE_KEY] = text
    store = Store(backend, 3)
    with pytest.raises(StoreError):
        store.load()
    assert store.get(1, 1) == 1


def test_jigsaw_initially_unfound(store):
    assert store.jigsaw_get(1) is None
    assert store.jigsaw_get(3) is None


def test_jigsaw_invalid_mapid(store):
    with pytest.raises(KeyError):
        store.jigsaw_get(0)
    with pytest.raises(KeyError):
        store.jigsaw_set(4, 1, 1, Xform.NONE)


def test_jigsaw_set_get(store):
    xform = Xform.SWAP | Xform.YREV
    assert store.jigsaw_set(2, 10, 20, xform) is True
    assert store.jigsaw_get(2) == (10, 20, xform)
    assert store.jigsaw_set(2, 10, 20, xform) is False


def test_jigsaw_clamps_and_illegal_xform(store):
    store.jigsaw_set(1, -5, 300, Xform.NONE)
    assert store.jigsaw_get(1) == (0, 254, Xform.NONE)
    store.jigsaw_set(1, 5, 5, Xform.XREV)
    assert store.jigsaw_get(1) is None


def test_jigsaw_roundtrip(backend, store):
    store.jigsaw_set(1, 200, 99, Xform.XREV | Xform.SWAP)
    store.jigsaw_set(3, 7, 0, Xform.XREV | Xform.YREV)
    store.jigsaw_save_if_dirty(True)
    assert len(backend[JIGSAW_KEY]) == 9
    assert backend[JIGSAW_KEY][3:6] == "///"
    other = Store(backend, 3)
    other.jigsaw_load()
    assert other.jigsaw_get(1) == (200, 99, Xform.XREV | Xform.SWAP)
    assert other.jigsaw_get(2) is None
    assert other.jigsaw_get(3) == (7, 0, Xform.XREV | Xform.YREV)


def test_jigsaw_debounce(backend, store):
    store.jigsaw_set(1, 1, 1, Xform.NONE)
    for _ in range(JIGSAW_DEBOUNCE):
        store.jigsaw_save_if_dirty(False)
    assert JIGSAW_KEY not in backend
    store.jigsaw_save_if_dirty(False)
    assert JIGSAW_KEY in backend
    assert store.jigsaw_dirty is False


@pytest.mark.parametrize("text", ["AB", "AAAAAAAA*"])
def test_jigsaw_load_blanks_bad_data(backend, text):
    backend[JIGSAW_KEY] = text
    store = Store(backend, 3)
    store.jigsaw_load()
    assert [store.jigsaw_get(m) for m in (1, 2, 3)] == [None, None, None]