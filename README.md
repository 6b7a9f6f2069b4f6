# bellacopia

The engine-independent core of a small tile-based role-playing game.
It models game state and screen logic without touching any graphics,
audio or input backend. Where something must be measured, drawn or
heard, you pass in a callable, and render methods return lists of draw
operations instead of drawing.

## What is inside

- `bellacopia.store` — `Store`, a bit-addressed save store of 1024
  bytes. Fields are read and written with `get(fld, size)` and
  `set(fld, size, value)` (sizes 1 to 16 bits; fields 0 and 1 are
  read-only). `listen(fld, size, callback)` registers change callbacks,
  `(0, 0)` hears every change. `load`, `save` and `save_if_dirty`
  persist to any mutable mapping of keys to text; `encode_save` and
  `decode_save` are the text encoding, and bad data raises
  `StoreError`. A second store keeps jigsaw-piece progress per map:
  `jigsaw_get`, `jigsaw_set`, `jigsaw_load` and
  `jigsaw_save_if_dirty(immediate)`, which waits out a debounce unless
  `immediate` is true. Piece rotations are `Xform` flag values.
- `bellacopia.res` — `ResourceTable`, a sorted table of map, sprite and
  decalsheet resources (`ResourceType`, `Resource`) with `add`,
  `search`, `get` and `highest_rid`, plus 256-entry physics and jigsaw
  colour tables per tilesheet (`add_tilesheet`, `physics_table`,
  `jigctab_table`; unknown tilesheets give all zeroes).
- `bellacopia.maps` — `MapRegistry` arranges `MapSpec` descriptions
  into `Plane`s of `Map`s. It looks maps up with `by_position`,
  `by_id` and `position_from_sprite`, applies each plane's
  out-of-bounds strategy (`MapOob`, `apply_oob`), restores tiles with
  `reset`, and raises `MapError` for inconsistent maps.
- `bellacopia.modal` — `Modal` and `ModalStack`. Each frame,
  `update_all` updates modals from the top down to the topmost
  interactive one, gives background updates below that down to the
  topmost opaque one, then updates any modal pushed meanwhile.
  `render_all` renders from the topmost opaque modal upward, calling
  the optional `blackout` callable when none is opaque.
  `drop_defunct` removes and closes finished modals. Pushing a defunct
  or already stacked modal, or onto a full stack, raises
  `ModalStackError`.
- `bellacopia.dialogue` — `DialogueModal`: a message box with up to
  eight `Choice`s, cursor movement, activation and cancellation. Its
  callback gets the chosen id, 0 for a plain acknowledgement, or -1
  when cancelled.
- `bellacopia.battle` — `BattleModal` wraps a minigame through the
  `BattleStage` sequence surprise, intro, play and final, and reports
  the outcome to its callback.

## Installing

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## A quick look

```python
from bellacopia.store import Store

backend = {}
store = Store(backend, map_count=4)
store.set(10, 4, 9)
assert store.get(10, 4) == 9
text = store.save()          # also written to backend["save"]
```

```python
from bellacopia.maps import MapOob, apply_oob

apply_oob(-1, 4, MapOob.LOOP)    # wraps around to 3
apply_oob(7, 4, MapOob.REPEAT)   # clamps to 3
```

```python
from bellacopia.dialogue import DialogueModal
from bellacopia.modal import ModalStack

def measure(text, max_width, max_height):
    return min(len(text) * 6, max_width), 8

stack = ModalStack()
box = DialogueModal(measure)
box.set_text("Go home?")
box.add_choice("Stay", 1)
box.add_choice("Go home", 2)
box.set_callback(print)
stack.push(box)
stack.update_all(0.016)      # lays out the box
ops = box.render()           # ("fill", ...), ("text", ...), ("tile", ...)
```

## What it does not do

The package has no window, renderer, audio or input handling, and no
command to run: a host program supplies text measurement and sounds,
turns the returned draw operations into pixels and feeds button states
to `handle_input`. It does not parse packed resource files; maps come
in as `MapSpec` values and tilesheet tables as bytes. There are no
sprites, collision physics or scrolling camera in the package.