"""
Tests for Channel: buffered and unbuffered transfer, FIFO fairness and close.
"""

from __future__ import annotations

import logging

import pytest

from cokernel import Channel, Scheduler, Spawn, Task, TaskStatus, WaitGroup, Yield, run


class TestChannelAccessors:
    def test_fresh_channel_state(self) -> None:
        ch: Channel[int] = Channel(2)

        assert ch.cap() == 2
        assert ch.size() == 0
        assert len(ch) == 0
        assert ch.ready() is False
        assert ch.closed() is False
        assert "cap=2" in repr(ch)

    def test_default_is_unbuffered(self) -> None:
        assert Channel().cap() == 0

    @pytest.mark.parametrize("capacity", [-1, 1.5, "3"])
    def test_invalid_capacity(self, capacity: object) -> None:
        with pytest.raises(ValueError):
            Channel(capacity)  # type: ignore[arg-type]


class TestBufferedChannel:
    def test_write_into_spare_room_does_not_block(self, scheduler: Scheduler) -> None:
        ch: Channel[str] = Channel(2)

        def writer():
            first = yield ch.write("a")
            second = yield ch.write("b")
            return first, second

        task = scheduler.spawn(writer)
        scheduler.run()

        assert task.result() == (True, True)
        assert ch.size() == 2
        assert ch.ready() is True

    def test_full_buffer_blocks_writer_until_read(self, scheduler: Scheduler) -> None:
        ch: Channel[int] = Channel(1)
        log: list[tuple[str, int]] = []
        sizes: list[int] = []

        def writer():
            for value in (1, 2, 3):
                ok = yield ch.write(value)
                assert ok is True
                sizes.append(ch.size())
                log.append(("w", value))

        def reader():
            for _ in range(3):
                value = yield ch.read()
                sizes.append(ch.size())
                log.append(("r", value))

        scheduler.spawn(writer)
        scheduler.spawn(reader)
        scheduler.run()

        assert [value for kind, value in log if kind == "r"] == [1, 2, 3]
        assert log.index(("w", 2)) > log.index(("r", 1))
        assert max(sizes) <= 1

    def test_reader_refills_slot_from_oldest_writer(self, scheduler: Scheduler) -> None:
        ch: Channel[str] = Channel(1)

        def writer(value: str):
            return (yield ch.write(value))

        scheduler.spawn(writer, "a")
        blocked = [scheduler.spawn(writer, value) for value in ("b", "c")]
        scheduler.run()
        assert ch.size() == 1
        assert all(task.status is TaskStatus.WAITING for task in blocked)

        def reader():
            values = []
            for _ in range(3):
                values.append((yield ch.read()))
            return values

        reader_task = scheduler.spawn(reader)
        scheduler.run()

        assert reader_task.result() == ["a", "b", "c"]
        assert [task.result() for task in blocked] == [True, True]
        assert ch.size() == 0

    def test_parked_reader_gets_value_directly(self, scheduler: Scheduler) -> None:
        ch: Channel[int] = Channel(3)

        def reader():
            return (yield ch.read())

        reader_task = scheduler.spawn(reader)
        scheduler.run()
        assert reader_task.status is TaskStatus.WAITING

        def writer():
            yield ch.write(9)
            # a later reader must not be able to steal the value handed over
            return ch.size()

        writer_task = scheduler.spawn(writer)
        scheduler.run()

        assert writer_task.result() == 0
        assert reader_task.result() == 9


class TestUnbufferedChannel:
    def test_writer_first_then_reader(self, scheduler: Scheduler) -> None:
        ch: Channel[str] = Channel(0)
        log: list[object] = []

        def writer():
            log.append("write-start")
            ok = yield ch.write("x")
            log.append(("write-done", ok))

        def reader():
            log.append("read-start")
            value = yield ch.read()
            log.append(("read-done", value))

        writer_task = scheduler.spawn(writer)
        scheduler.run()

        assert writer_task.status is TaskStatus.WAITING
        assert ch.ready() is False
        assert ch.size() == 0

        scheduler.spawn(reader)
        scheduler.run()

        assert log == ["write-start", "read-start", ("read-done", "x"), ("write-done", True)]
        assert ch.ready() is False

    def test_reader_first_then_writer(self, scheduler: Scheduler) -> None:
        ch: Channel[str] = Channel(0)
        log: list[object] = []

        def writer():
            log.append("write-start")
            ok = yield ch.write("x")
            log.append(("write-done", ok))

        def reader():
            log.append("read-start")
            value = yield ch.read()
            log.append(("read-done", value))

        scheduler.spawn(reader)
        scheduler.run()
        assert ch.ready() is False

        scheduler.spawn(writer)
        scheduler.run()

        assert log == ["read-start", "write-start", ("write-done", True), ("read-done", "x")]

    def test_never_reports_ready(self, scheduler: Scheduler) -> None:
        ch: Channel[int] = Channel(0)
        observed: list[bool] = []

        def writer(value: int):
            yield ch.write(value)
            observed.append(ch.ready())

        def reader():
            for _ in range(3):
                yield ch.read()
                observed.append(ch.ready())

        for value in range(3):
            scheduler.spawn(writer, value)
        observed.append(ch.ready())
        scheduler.spawn(reader)
        scheduler.run()

        assert observed and not any(observed)

    def test_queued_writers_served_in_order(self, scheduler: Scheduler) -> None:
        ch: Channel[int] = Channel(0)

        def writer(value: int):
            return (yield ch.write(value))

        writers = [scheduler.spawn(writer, value) for value in (1, 2, 3)]
        scheduler.run()

        def reader():
            values = []
            for _ in range(3):
                values.append((yield ch.read()))
            return values

        reader_task = scheduler.spawn(reader)
        scheduler.run()

        assert reader_task.result() == [1, 2, 3]
        assert [task.result() for task in writers] == [True, True, True]


class TestFifoFairness:
    @pytest.mark.parametrize("capacity", [0, 1, 3])
    def test_blocked_readers_receive_in_block_order(
        self, scheduler: Scheduler, capacity: int
    ) -> None:
        ch: Channel[int] = Channel(capacity)
        received: dict[str, int | None] = {}
        wake_order: list[str] = []

        def reader(name: str):
            received[name] = yield ch.read()
            wake_order.append(name)

        def writer():
            for value in (10, 20, 30):
                assert (yield ch.write(value)) is True

        for name in ("r1", "r2", "r3"):
            scheduler.spawn(reader, name)
        scheduler.run()
        scheduler.spawn(writer)
        scheduler.run()

        assert received == {"r1": 10, "r2": 20, "r3": 30}
        assert wake_order == ["r1", "r2", "r3"]

    def test_late_greedy_reader_does_not_cut_in_line(self, scheduler: Scheduler) -> None:
        """A reader that arrives later and loops cannot overtake readers already parked."""
        ch: Channel[str] = Channel(0)
        greedy_values: list[str] = []

        def patient():
            return (yield ch.read())

        def greedy():
            while True:
                value = yield ch.read()
                if value is None:
                    return
                greedy_values.append(value)

        def writer():
            for value in ("a", "b", "c"):
                yield ch.write(value)
            ch.close()

        first = scheduler.spawn(patient)
        second = scheduler.spawn(patient)
        scheduler.run()

        scheduler.spawn(greedy)
        scheduler.spawn(writer)
        scheduler.run()

        assert first.result() == "a"
        assert second.result() == "b"
        assert greedy_values == ["c"]


class TestClose:
    def test_close_drains_buffer_then_reports_empty(self) -> None:
        def main():
            ch: Channel[int] = Channel(3)
            for value in (1, 2, 3):
                assert (yield ch.write(value)) is True
            ch.close()
            assert ch.closed() is True
            assert ch.size() == 3
            values = []
            for _ in range(4):
                values.append((yield ch.read()))
            late_write = yield ch.write(4)
            return values, late_write

        result = run(main)

        assert result.is_ok()
        assert result.value == ([1, 2, 3, None], False)

    def test_close_wakes_blocked_readers_with_none(self, scheduler: Scheduler) -> None:
        ch: Channel[int] = Channel(0)
        order: list[tuple[str, int | None]] = []

        def reader(name: str):
            value = yield ch.read()
            order.append((name, value))

        scheduler.spawn(reader, "r1")
        scheduler.spawn(reader, "r2")
        scheduler.run()

        ch.close()
        scheduler.run()

        assert order == [("r1", None), ("r2", None)]

    def test_close_wakes_blocked_writers_with_false(self, scheduler: Scheduler) -> None:
        ch: Channel[str] = Channel(1)

        def writer(value: str):
            return (yield ch.write(value))

        first = scheduler.spawn(writer, "a")
        blocked = [scheduler.spawn(writer, value) for value in ("b", "c")]
        scheduler.run()

        ch.close()
        scheduler.run()

        assert first.result() is True
        assert [task.result() for task in blocked] == [False, False]

        def reader():
            values = []
            for _ in range(2):
                values.append((yield ch.read()))
            return values

        reader_task = scheduler.spawn(reader)
        scheduler.run()

        assert reader_task.result() == ["a", None]

    def test_unbuffered_close_discards_pending_handoff(self, scheduler: Scheduler) -> None:
        ch: Channel[str] = Channel(0)

        def writer():
            return (yield ch.write("lost"))

        def reader():
            return (yield ch.read())

        writer_task = scheduler.spawn(writer)
        scheduler.run()
        ch.close()
        reader_task = scheduler.spawn(reader)
        scheduler.run()

        assert writer_task.result() is False
        assert reader_task.result() is None

    def test_write_after_close_returns_false_without_blocking(self) -> None:
        def main():
            ch: Channel[int] = Channel(0)
            ch.close()
            return (yield ch.write(1))

        assert run(main).value is False

    def test_double_close_is_a_logged_noop(self, caplog: pytest.LogCaptureFixture) -> None:
        ch: Channel[int] = Channel(1)

        with caplog.at_level(logging.WARNING, logger="cokernel.channel"):
            ch.close()
            ch.close()

        assert ch.closed() is True
        assert "already closed" in caplog.text

    def test_wrapped_none_is_not_mistaken_for_close(self) -> None:
        def main():
            ch: Channel[tuple[None]] = Channel(2)
            yield ch.write((None,))
            ch.close()
            first = yield ch.read()
            second = yield ch.read()
            return first, second

        assert run(main).unwrap() == ((None,), None)

    def test_close_wakes_each_waiter_once(self, scheduler: Scheduler) -> None:
        ch: Channel[int] = Channel(0)
        wakes: list[str] = []

        def reader(name: str):
            yield ch.read()
            wakes.append(name)

        scheduler.spawn(reader, "only")
        scheduler.run()

        ch.close()
        ch.close()
        scheduler.run()

        assert wakes == ["only"]


def _writer(ch: Channel[int], wg: WaitGroup, base: int, results: list[bool]):
    with wg.guard():
        for offset in range(5):
            results.append((yield ch.write(base + offset)))
            if offset % 2:
                yield Yield()


def _reader(ch: Channel[int], received: list[int]):
    while True:
        value = yield ch.read()
        if value is None:
            return
        received.append(value)
        yield Yield()


def _pipeline(capacity: int):
    ch: Channel[int] = Channel(capacity)
    wg = WaitGroup()
    received: list[int] = []
    results: list[bool] = []

    readers: list[Task] = []
    for _ in range(2):
        readers.append((yield Spawn(_reader, ch, received)))

    wg.add(3)
    for base in (0, 100, 200):
        yield Spawn(_writer, ch, wg, base, results)

    yield wg.wait()
    ch.close()
    for reader in readers:
        yield reader.join()
    return received, results


class TestNoDuplicationOrLoss:
    @pytest.mark.parametrize("capacity", [0, 1, 2, 5])
    def test_every_written_value_is_read_exactly_once(self, capacity: int) -> None:
        result = run(_pipeline, capacity)

        assert result.is_ok()
        received, results = result.value
        expected = [base + offset for base in (0, 100, 200) for offset in range(5)]
        assert sorted(received) == expected
        assert len(received) == len(set(received))
        assert results == [True] * 15

    @pytest.mark.parametrize("capacity", [0, 1, 4])
    def test_single_reader_sees_write_order(self, capacity: int) -> None:
        def main():
            ch: Channel[int] = Channel(capacity)

            def producer():
                for value in range(20):
                    yield ch.write(value)
                ch.close()

            yield Spawn(producer)
            received = []
            while (value := (yield ch.read())) is not None:
                received.append(value)
            return received

        assert run(main).unwrap() == list(range(20))
