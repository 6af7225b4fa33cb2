# SPDX-License-Identifier: Apache-2.0
from overlaysync.observable import Observable, Signal, to_observable


def test_observable_notifies_only_on_change():
    obs = Observable(1)
    seen: list[int] = []
    obs.subscribe(seen.append)
    assert obs.set(1) is False
    assert obs.set(2) is True
    assert seen == [2]
    assert obs.value == 2


def test_signal_always_emits_and_unsubscribes():
    sig: Signal[str] = Signal()
    seen: list[str] = []
    unsubscribe = sig.subscribe(seen.append)
    sig.emit("a")
    sig.emit("a")
    unsubscribe()
    unsubscribe()  # second call is harmless
    sig.emit("b")
    assert seen == ["a", "a"]
    assert len(sig) == 0


def test_handlers_run_synchronously_in_order():
    src = Observable(0)
    derived = Observable(0)
    order: list[str] = []
    src.subscribe(lambda v: (order.append("first"), derived.set(v * 2)))
    src.subscribe(lambda v: order.append(f"second saw derived={derived.value}"))
    src.set(3)
    assert order == ["first", "second saw derived=6"]


def test_to_observable_wraps_plain_values():
    existing = Observable("x")
    assert to_observable(existing) is existing
    wrapped = to_observable(0.5)
    assert isinstance(wrapped, Observable) and wrapped.value == 0.5
