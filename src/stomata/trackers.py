"""History trackers fed by each refresh tick."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from stomata.models import DiskUsage, InterfaceCounters
from stomata.series import DEFAULT_CLAMP_QUANTILE, BoundedSeries

DEFAULT_NETWORK_HISTORY = 100
DEFAULT_SINGLE_PROCESS_HISTORY = 60


@dataclass(slots=True, frozen=True)
class InterfaceTotals:
    """Cumulative (non-windowed) counters of one interface."""

    bytes_received: int = 0
    bytes_transmitted: int = 0
    packets_received: int = 0
    packets_transmitted: int = 0
    errors_received: int = 0
    errors_transmitted: int = 0


class NetworkInterfaceHistory:
    """Six parallel series for one network interface plus its latest totals."""

    def __init__(self, capacity: int, quantile: float = DEFAULT_CLAMP_QUANTILE) -> None:
        self.received_bytes = BoundedSeries(capacity, quantile)
        self.transmitted_bytes = BoundedSeries(capacity, quantile)
        self.packets_received = BoundedSeries(capacity, quantile)
        self.packets_transmitted = BoundedSeries(capacity, quantile)
        self.errors_received = BoundedSeries(capacity, quantile)
        self.errors_transmitted = BoundedSeries(capacity, quantile)
        self.totals = InterfaceTotals()

    def update(self, counters: InterfaceCounters) -> None:
        """Push the per-tick deltas, clamped, and record the totals."""
        self.received_bytes.push_clamped(counters.bytes_received)
        self.transmitted_bytes.push_clamped(counters.bytes_transmitted)
        self.packets_received.push_clamped(counters.packets_received)
        self.packets_transmitted.push_clamped(counters.packets_transmitted)
        self.errors_received.push_clamped(counters.errors_received)
        self.errors_transmitted.push_clamped(counters.errors_transmitted)
        self.totals = InterfaceTotals(
            bytes_received=counters.total_bytes_received,
            bytes_transmitted=counters.total_bytes_transmitted,
            packets_received=counters.total_packets_received,
            packets_transmitted=counters.total_packets_transmitted,
            errors_received=counters.total_errors_received,
            errors_transmitted=counters.total_errors_transmitted,
        )


class NetworkTracker:
    """
    Per-interface histories keyed by interface name.

    Interfaces missing from a snapshot keep their history untouched; nothing
    is pruned.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_NETWORK_HISTORY,
        quantile: float = DEFAULT_CLAMP_QUANTILE,
    ) -> None:
        self._capacity = capacity
        self._quantile = quantile
        self._interfaces: dict[str, NetworkInterfaceHistory] = {}

    def __len__(self) -> int:
        return len(self._interfaces)

    def __contains__(self, name: object) -> bool:
        return name in self._interfaces

    def get(self, name: str) -> NetworkInterfaceHistory | None:
        """Get the history of one interface."""
        return self._interfaces.get(name)

    def update(self, interfaces: Iterable[InterfaceCounters]) -> None:
        """Feed one network snapshot into the histories."""
        for counters in interfaces:
            history = self._interfaces.get(counters.name)
            if history is None:
                history = NetworkInterfaceHistory(self._capacity, self._quantile)
                self._interfaces[counters.name] = history
            history.update(counters)

    def histories(self) -> dict[str, NetworkInterfaceHistory]:
        """Return the histories ordered by interface name."""
        return {name: self._interfaces[name] for name in sorted(self._interfaces)}


@dataclass
class SingleProcessTracker:
    """Disk read/write history of the process currently being inspected."""

    capacity: int = DEFAULT_SINGLE_PROCESS_HISTORY
    pid: int | None = None
    read_history: BoundedSeries = field(init=False)
    write_history: BoundedSeries = field(init=False)

    def __post_init__(self) -> None:
        self.read_history = BoundedSeries(self.capacity)
        self.write_history = BoundedSeries(self.capacity)

    def update(self, pid: int, disk_usage: DiskUsage) -> None:
        """Record the latest deltas, starting over when the PID changes."""
        if pid != self.pid:
            self.read_history.clear()
            self.write_history.clear()
            self.pid = pid
        # raw deltas, no clamping on the single-process panels
        self.read_history.push(disk_usage.read_bytes)
        self.write_history.push(disk_usage.written_bytes)
