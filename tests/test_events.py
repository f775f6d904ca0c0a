"""Tests for specgraph.events.EventEmitter."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from specgraph.events import EventEmitter
from specgraph.models import EntityKind, Model, Path


def _run(coro: Any) -> Any:
    return asyncio.run(coro)


class TestSubscribe:
    def test_string_category(self) -> None:
        emitter = EventEmitter()
        emitter.on("SCHEMA", lambda entity: None)
        assert len(emitter.listeners(EntityKind.SCHEMA)) == 1

    def test_unknown_category_raises(self) -> None:
        emitter = EventEmitter()
        with pytest.raises(ValueError):
            emitter.on("WIDGET", lambda entity: None)

    def test_listeners_is_a_copy(self) -> None:
        emitter = EventEmitter()
        emitter.listeners(EntityKind.PATH).append(print)
        assert emitter.listeners(EntityKind.PATH) == []


class TestEmit:
    def test_delivers_in_subscription_order(self) -> None:
        emitter = EventEmitter()
        calls: list[str] = []
        emitter.on(EntityKind.PATH, lambda p: calls.append(f"first:{p.name}"))
        emitter.on(EntityKind.PATH, lambda p: calls.append(f"second:{p.name}"))

        _run(emitter.emit([EntityKind.PATH], Path(name="/a")))

        assert calls == ["first:/a", "second:/a"]

    def test_records_under_every_category(self) -> None:
        emitter = EventEmitter()
        model = Model(name="Pet")
        _run(emitter.emit([EntityKind.SCHEMA, EntityKind.MODEL], model))

        assert emitter.snapshot.get(EntityKind.SCHEMA) == [model]
        assert emitter.snapshot.get(EntityKind.MODEL) == [model]
        assert len(emitter.snapshot) == 2

    def test_other_categories_not_delivered(self) -> None:
        emitter = EventEmitter()
        seen: list[Any] = []
        emitter.on(EntityKind.METHOD, seen.append)
        _run(emitter.emit([EntityKind.PATH], Path(name="/a")))
        assert seen == []

    def test_async_listener_is_awaited_before_next(self) -> None:
        emitter = EventEmitter()
        calls: list[str] = []

        async def slow(path: Path) -> None:
            await asyncio.sleep(0)
            calls.append(f"slow:{path.name}")

        emitter.on(EntityKind.PATH, slow)
        emitter.on(EntityKind.PATH, lambda p: calls.append(f"sync:{p.name}"))

        async def emit_two() -> None:
            await emitter.emit([EntityKind.PATH], Path(name="/a"))
            await emitter.emit([EntityKind.PATH], Path(name="/b"))

        _run(emit_two())
        assert calls == ["slow:/a", "sync:/a", "slow:/b", "sync:/b"]

    def test_listener_exception_propagates(self) -> None:
        emitter = EventEmitter()

        def boom(entity: Any) -> None:
            raise RuntimeError("listener failed")

        emitter.on(EntityKind.PATH, boom)
        with pytest.raises(RuntimeError, match="listener failed"):
            _run(emitter.emit([EntityKind.PATH], Path(name="/a")))


class TestForkAndReplay:
    def test_fork_shares_listeners_with_fresh_snapshot(self) -> None:
        emitter = EventEmitter()
        seen: list[str] = []
        emitter.on(EntityKind.PATH, lambda p: seen.append(p.name))
        _run(emitter.emit([EntityKind.PATH], Path(name="/a")))

        child = emitter.fork()
        _run(child.emit([EntityKind.PATH], Path(name="/b")))
        emitter.on(EntityKind.METHOD, lambda m: None)

        assert seen == ["/a", "/b"]
        assert [p.name for p in child.snapshot.get(EntityKind.PATH)] == ["/b"]
        assert [p.name for p in emitter.snapshot.get(EntityKind.PATH)] == ["/a"]
        assert len(child.listeners(EntityKind.METHOD)) == 1

    def test_replay_redelivers_without_recording(self) -> None:
        source = EventEmitter()
        _run(source.emit([EntityKind.PATH], Path(name="/a")))
        _run(source.emit([EntityKind.SCHEMA, EntityKind.MODEL], Model(name="Pet")))

        target = EventEmitter()
        seen: list[tuple[str, str]] = []
        target.on(EntityKind.PATH, lambda e: seen.append(("PATH", e.name)))
        target.on(EntityKind.MODEL, lambda e: seen.append(("MODEL", e.name)))
        _run(target.replay(source.snapshot))

        assert seen == [("PATH", "/a"), ("MODEL", "Pet")]
        assert len(target.snapshot) == 0
