"""Bounded time-series storage for streaming counters."""

import math
from collections import deque
from collections.abc import Iterator

DEFAULT_CLAMP_QUANTILE = 0.95

Number = int | float


class BoundedSeries:
    """
    Fixed-capacity FIFO history of a scalar counter.

    Once full, every push evicts the oldest sample. ``push_clamped`` caps a
    new sample at a percentile of the buffered history so that a single
    burst (a backup job, a package download) does not flatten the rest of a
    sparkline.
    """

    __slots__ = ("_values", "_quantile")

    def __init__(self, capacity: int, quantile: float = DEFAULT_CLAMP_QUANTILE) -> None:
        """
        Initialize the series.

        Args:
            capacity: Maximum number of samples kept. Must be at least 1.
            quantile: Clamp quantile in the open interval (0, 1).
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if not 0.0 < quantile < 1.0:
            raise ValueError(f"clamp quantile must be in (0, 1), got {quantile}")
        self._values: deque[Number] = deque(maxlen=capacity)
        self._quantile = quantile

    @property
    def capacity(self) -> int:
        """Get the maximum number of samples."""
        return self._values.maxlen or 0

    @property
    def quantile(self) -> float:
        """Get the clamp quantile."""
        return self._quantile

    @property
    def latest(self) -> Number | None:
        """Get the most recent sample, or None when empty."""
        return self._values[-1] if self._values else None

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Number]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"BoundedSeries(capacity={self.capacity}, values={list(self._values)!r})"

    def push(self, value: Number) -> None:
        """Append a sample, evicting the oldest one when at capacity."""
        self._values.append(value)

    def push_clamped(self, value: Number) -> Number:
        """
        Append a sample capped at the clamp-quantile of the history.

        The percentile is taken over the buffered samples plus the candidate.
        An empty series stores the raw value.

        Returns:
            The value actually stored.
        """
        if self._values:
            threshold = percentile_value([*self._values, value], self._quantile)
            if value > threshold:
                value = threshold
        self._values.append(value)
        return value

    def values(self) -> list[Number]:
        """Return the samples oldest first."""
        return list(self._values)

    def clear(self) -> None:
        """Drop all samples."""
        self._values.clear()


def percentile_index(size: int, quantile: float) -> int:
    """Index of the ``quantile`` order statistic in a set of ``size`` values."""
    # round half away from zero; the builtin round() rounds half to even
    return int(math.floor((size - 1) * quantile + 0.5))


def percentile_value(data: list[Number], quantile: float) -> Number:
    """Return the ``quantile`` order statistic of a non-empty list."""
    return sorted(data)[percentile_index(len(data), quantile)]
