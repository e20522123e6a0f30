import math
from collections import deque


class WindowedAverager:
    """
    Moving average over the last `capacity` pushed values.
    mean() sums the held values exactly (math.fsum), so a huge value that
    has already been evicted leaves no rounding residue behind.
    """

    def __init__(self, capacity: int):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"capacity must be an integer >= 1, got {capacity!r}")
        self.capacity = capacity
        self.values = deque(maxlen=capacity)

    def __len__(self):
        return len(self.values)

    def push(self, value: float):
        # deque(maxlen) drops the oldest value once full
        self.values.append(value)

    def mean(self) -> float:
        if not self.values:
            return 0.0
        return math.fsum(self.values) / len(self.values)

    def clear(self):
        self.values.clear()
