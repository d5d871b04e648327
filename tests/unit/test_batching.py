"""Unit tests for batch splitting and concurrent execution."""

import threading

import pytest

from harvester.batching import run_concurrently, split_batches


class TestSplitBatches:
    def test_last_batch_holds_remainder(self) -> None:
        assert split_batches(range(5), 2) == [[0, 1], [2, 3], [4]]

    def test_empty(self) -> None:
        assert split_batches([], 3) == []

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            split_batches([1], 0)


class TestRunConcurrently:
    def test_results_in_input_order(self) -> None:
        release = threading.Event()

        def slow():
            release.wait(1)
            return "slow"

        def fast():
            release.set()
            return "fast"

        assert run_concurrently([slow, fast]) == ["slow", "fast"]

    def test_exception_becomes_none(self) -> None:
        def boom():
            raise RuntimeError("boom")

        assert run_concurrently([lambda: 1, boom, lambda: 3]) == [1, None, 3]

    def test_calls_run_in_parallel(self) -> None:
        barrier = threading.Barrier(3, timeout=2)
        assert sorted(run_concurrently([barrier.wait] * 3)) == [0, 1, 2]
