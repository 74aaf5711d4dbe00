"""Unit tests for subscriptions and the event emitter."""

from contextlib import ExitStack

from vizual.core.events import EventEmitter, Subscription


def test_emit_reaches_every_listener() -> None:
    emitter: EventEmitter[int] = EventEmitter()
    seen: list[tuple[str, int]] = []
    emitter.subscribe(lambda v: seen.append(("a", v)))
    emitter.subscribe(lambda v: seen.append(("b", v)))
    emitter.emit(1)
    assert seen == [("a", 1), ("b", 1)]


def test_listener_may_unsubscribe_while_emitting() -> None:
    emitter: EventEmitter[int] = EventEmitter()
    seen: list[int] = []
    subscription: Subscription | None = None

    def _once(value: int) -> None:
        seen.append(value)
        assert subscription is not None
        subscription.dispose()

    subscription = emitter.subscribe(_once)
    emitter.emit(1)
    emitter.emit(2)
    assert seen == [1]
    assert len(emitter) == 0


def test_subscriptions_dispose_as_a_group() -> None:
    emitter: EventEmitter[int] = EventEmitter()
    with ExitStack() as stack:
        first = stack.enter_context(emitter.subscribe(lambda _: None))
        stack.enter_context(emitter.subscribe(lambda _: None))
        assert len(emitter) == 2
    assert len(emitter) == 0
    assert first.disposed


def test_dispose_is_idempotent() -> None:
    calls: list[None] = []
    subscription = Subscription(lambda: calls.append(None))
    subscription.dispose()
    subscription.dispose()
    assert calls == [None]
