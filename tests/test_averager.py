import random

import pytest

from utils.averager import WindowedAverager


def test_mean_of_last_capacity_values():
    avg = WindowedAverager(3)
    for v in [1, 2, 3, 4]:
        avg.push(v)
    assert len(avg) == 3
    assert avg.mean() == pytest.approx(3.0)


def test_empty_mean_is_zero():
    avg = WindowedAverager(5)
    assert len(avg) == 0
    assert avg.mean() == 0.0


def test_partial_window_uses_only_held_values():
    avg = WindowedAverager(10)
    avg.push(2.0)
    avg.push(4.0)
    assert avg.mean() == pytest.approx(3.0)


@pytest.mark.parametrize("capacity", [1, 2, 7, 10])
def test_mean_tracks_random_sequences(capacity):
    rng = random.Random(capacity)
    avg = WindowedAverager(capacity)
    pushed = []
    for _ in range(200):
        v = rng.uniform(-1.0, 1.0)
        avg.push(v)
        pushed.append(v)
        window = pushed[-capacity:]
        assert avg.mean() == pytest.approx(sum(window) / len(window), abs=1e-9)


@pytest.mark.parametrize("capacity", [0, -1, 2.5, True, None])
def test_invalid_capacity_rejected(capacity):
    with pytest.raises(ValueError):
        WindowedAverager(capacity)


def test_clear():
    avg = WindowedAverager(3)
    avg.push(5.0)
    avg.push(6.0)
    avg.clear()
    assert len(avg) == 0
    assert avg.mean() == 0.0
    avg.push(1.0)
    assert avg.mean() == pytest.approx(1.0)


def test_evicted_large_value_leaves_no_residue():
    avg = WindowedAverager(2)
    for v in [1e17, 1.0, 1.0, 1.0]:
        avg.push(v)
    assert list(avg.values) == [1.0, 1.0]
    assert avg.mean() == 1.0
