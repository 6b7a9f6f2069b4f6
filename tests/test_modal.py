import pytest

from bellacopia.modal import Modal, ModalStack, ModalStackError


class Recorder(Modal):
    def __init__(self, name, log, opaque=False, interactive=False):
        super().__init__()
        self.name = name
        self.log = log
        self.opaque = opaque
        self.interactive = interactive
        self.closed = False

    def update(self, elapsed):
        self.log.append(("update", self.name))

    def update_background(self, elapsed):
        self.log.append(("bg", self.name))

    def render(self):
        self.log.append(("render", self.name))

    def close(self):
        self.closed = True


class OtherRecorder(Recorder):
    pass


def test_push_and_index():
    log = []
    stack = ModalStack()
    a, b = Recorder("a", log), Recorder("b", log)
    stack.push(a)
    stack.push(b)
    assert stack.index(a) == 0
    assert stack.index(b) == 1
    assert stack.index(Recorder("c", log)) is None
    assert list(stack) == [a, b]


def test_push_twice_raises():
    stack = ModalStack()
    modal = Recorder("a", [])
    stack.push(modal)
    with pytest.raises(ModalStackError):
        stack.push(modal)


def test_push_defunct_raises():
    modal = Recorder("a", [])
    modal.defunct = True
    with pytest.raises(ModalStackError):
        ModalStack().push(modal)


def test_push_beyond_limit_raises():
    stack = ModalStack(limit=2)
    stack.push(Recorder("a", []))
    stack.push(Recorder("b", []))
    with pytest.raises(ModalStackError):
        stack.push(Recorder("c", []))
    assert len(stack) == 2


def test_pull_does_not_close():
    stack = ModalStack()
    a, b = Recorder("a", []), Recorder("b", [])
    stack.push(a)
    stack.push(b)
    stack.pull(a)
    assert list(stack) == [b]
    assert a.closed is False


def test_top_and_bottom_of_type():
    stack = ModalStack()
    a, b, c = Recorder("a", []), OtherRecorder("b", []), OtherRecorder("c", [])
    for modal in (a, b, c):
        stack.push(modal)
    assert stack.top_of_type(OtherRecorder) is c
    assert stack.bottom_of_type(OtherRecorder) is b
    assert stack.bottom_of_type(Recorder) is a


def test_update_foreground_and_background():
    log = []
    stack = ModalStack()
    stack.push(Recorder("a", log, opaque=True))
    stack.push(Recorder("b", log, interactive=True))
    stack.push(Recorder("c", log))
    stack.update_all(0.1)
    assert log == [("update", "c"), ("update", "b"), ("bg", "a")]


def test_update_stops_at_opaque():
    log = []
    stack = ModalStack()
    stack.push(Recorder("a", log))
    stack.push(Recorder("b", log, opaque=True))
    stack.update_all(0.1)
    assert log == [("update", "b")]


def test_update_skips_defunct():
    log = []
    stack = ModalStack()
    stack.push(Recorder("a", log))
    top = Recorder("b", log)
    stack.push(top)
    top.defunct = True
    stack.update_all(0.1)
    assert log == [("update", "a")]


def test_update_reaches_modals_pushed_during_update():
    log = []
    stack = ModalStack()

    class Spawner(Recorder):
        def update(self, elapsed):
            super().update(elapsed)
            stack.push(Recorder("new", log))

    stack.push(Spawner("a", log, opaque=True))
    stack.update_all(0.1)
    assert log == [("update", "a"), ("update", "new")]


def test_render_from_topmost_opaque():
    log = []
    blackouts = []
    stack = ModalStack(blackout=lambda: blackouts.append(True))
    stack.push(Recorder("a", log))
    stack.push(Recorder("b", log, opaque=True))
    stack.push(Recorder("c", log))
    stack.render_all()
    assert log == [("render", "b"), ("render", "c")]
    assert blackouts == []


def test_render_without_opaque_blacks_out():
    log = []
    blackouts = []
    stack = ModalStack(blackout=lambda: blackouts.append(True))
    stack.push(Recorder("a", log))
    stack.push(Recorder("b", log))
    stack.render_all()
    assert blackouts == [True]
    assert log == [("render", "a"), ("render", "b")]


def test_drop_defunct_removes_and_closes():
    stack = ModalStack()
    a, b, c = Recorder("a", []), Recorder("b", []), Recorder("c", [])
    for modal in (a, b, c):
        stack.push(modal)
    a.defunct = True
    c.defunct = True
    stack.drop_defunct()
    assert list(stack) == [b]
    assert a.closed and c.closed
    assert not b.closed