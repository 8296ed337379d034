"""Data models for stomata."""

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class CgroupInfo:
    """One parsed line of a process cgroup descriptor."""

    hierarchy_id: int = 0  # 0 = unified (v2) hierarchy
    controllers: tuple[str, ...] = ()
    path: str = "/"


@dataclass(slots=True, frozen=True)
class RawProcess:
    """Provider-neutral handle for a process, fully owned by the snapshot."""

    pid: int
    name: str
    cpu_percent: float
    memory_rss: int  # Bytes
    status: str
    parent_pid: int | None = None
    start_time: float = 0.0  # Epoch seconds
    cwd: str | None = None


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a process, annotated with its cgroup membership."""

    pid: int
    name: str
    cpu_percent: float
    memory_rss: int  # Bytes
    status: str
    cgroup_path: str = "/"
    cgroup_controllers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class DiskUsage:
    """Disk I/O counters for one process."""

    total_read_bytes: int = 0
    total_written_bytes: int = 0
    read_bytes: int = 0  # Since the previous sample
    written_bytes: int = 0


@dataclass(slots=True, frozen=True)
class SingleProcessView:
    """Detailed view of one process, valid for a single refresh cycle."""

    process: ProcessRecord
    tasks: tuple[ProcessRecord, ...]
    disk_usage: DiskUsage
    start_time: float  # Epoch seconds
    running_time: float  # Seconds
    cwd: str | None = None
    parent_pid: int | None = None


@dataclass(slots=True, frozen=True)
class InterfaceCounters:
    """Network counters for one interface: per-tick deltas plus cumulative totals."""

    name: str
    bytes_received: int = 0
    bytes_transmitted: int = 0
    packets_received: int = 0
    packets_transmitted: int = 0
    errors_received: int = 0
    errors_transmitted: int = 0
    total_bytes_received: int = 0
    total_bytes_transmitted: int = 0
    total_packets_received: int = 0
    total_packets_transmitted: int = 0
    total_errors_received: int = 0
    total_errors_transmitted: int = 0


@dataclass(slots=True, frozen=True)
class HostInfo:
    """Static host description shown on the overview page."""

    hostname: str
    os_name: str
    kernel_release: str
    architecture: str
    cpu_count: int
    boot_time: float  # Epoch seconds


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Snapshot of overall system state."""

    cpu_percent_per_core: tuple[float, ...]
    cpu_percent: float
    memory_total: int
    memory_used: int
    memory_percent: float
    swap_total: int
    swap_used: int
    swap_percent: float
    load_avg: tuple[float, float, float]
    uptime_seconds: float
