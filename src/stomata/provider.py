"""psutil-backed metrics provider for stomata."""

import logging
import platform
import socket
import time
from typing import Any, Protocol

import psutil

from stomata.cgroups import CgroupReader, build_process_record, read_cgroups
from stomata.models import (
    DiskUsage,
    HostInfo,
    InterfaceCounters,
    ProcessRecord,
    RawProcess,
    SingleProcessView,
    SystemSnapshot,
)

logger = logging.getLogger(__name__)

# Attributes to fetch per process in one pass
PROCESS_ATTRS = ["pid", "name", "status", "cpu_percent", "memory_info", "ppid"]

_SKIPPED = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess)


class MetricsProvider(Protocol):
    """Source of raw OS snapshots consumed by the engine."""

    def host_info(self) -> HostInfo: ...

    def system(self) -> SystemSnapshot: ...

    def processes(self) -> list[RawProcess]: ...

    def network(self) -> list[InterfaceCounters]: ...

    def single_process(self, pid: int) -> SingleProcessView | None: ...


class PsutilProvider:
    """
    Metrics provider that reads the local machine through psutil.

    CPU percentages and network/disk deltas are computed against the
    previous call, so the first sample after construction reports zeros.
    Processes that vanish or deny access mid-poll are skipped.
    """

    def __init__(self, cgroup_reader: CgroupReader = read_cgroups) -> None:
        """
        Initialize the provider.

        Args:
            cgroup_reader: Callable returning the cgroup groups of a PID.
        """
        self._cgroup_reader = cgroup_reader
        self._prev_net: dict[str, Any] = {}
        # Inspected process handle, kept across calls so cpu_percent has a baseline
        self._inspected: psutil.Process | None = None
        self._prev_disk: tuple[int, int] | None = None
        # Prime CPU percent (first call returns 0.0)
        psutil.cpu_percent(percpu=True)

    def host_info(self) -> HostInfo:
        """Describe the host."""
        uname = platform.uname()
        return HostInfo(
            hostname=socket.gethostname(),
            os_name=f"{uname.system} {uname.version}".strip(),
            kernel_release=uname.release,
            architecture=uname.machine,
            cpu_count=psutil.cpu_count() or 1,
            boot_time=psutil.boot_time(),
        )

    def system(self) -> SystemSnapshot:
        """Collect CPU, memory, swap, load and uptime."""
        cpu_percents = psutil.cpu_percent(percpu=True)
        overall = sum(cpu_percents) / len(cpu_percents) if cpu_percents else 0.0
        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()
        try:
            load_avg = psutil.getloadavg()
        except (AttributeError, OSError):
            load_avg = (0.0, 0.0, 0.0)

        return SystemSnapshot(
            cpu_percent_per_core=tuple(cpu_percents),
            cpu_percent=overall,
            memory_total=mem.total,
            memory_used=mem.used,
            memory_percent=mem.percent,
            swap_total=swap.total,
            swap_used=swap.used,
            swap_percent=swap.percent,
            load_avg=tuple(load_avg),
            uptime_seconds=time.time() - psutil.boot_time(),
        )

    def processes(self) -> list[RawProcess]:
        """Collect a raw handle for every running process."""
        processes: list[RawProcess] = []
        for proc in psutil.process_iter(attrs=PROCESS_ATTRS):
            try:
                processes.append(_raw_from_info(proc.info))
            except _SKIPPED:
                continue
        return processes

    def network(self) -> list[InterfaceCounters]:
        """Collect per-interface deltas since the previous call, plus totals."""
        try:
            counters = psutil.net_io_counters(pernic=True)
        except OSError:
            logger.warning("Network counters unavailable", exc_info=True)
            return []

        interfaces: list[InterfaceCounters] = []
        for name, now in counters.items():
            prev = self._prev_net.get(name, now)
            interfaces.append(
                InterfaceCounters(
                    name=name,
                    bytes_received=max(now.bytes_recv - prev.bytes_recv, 0),
                    bytes_transmitted=max(now.bytes_sent - prev.bytes_sent, 0),
                    packets_received=max(now.packets_recv - prev.packets_recv, 0),
                    packets_transmitted=max(now.packets_sent - prev.packets_sent, 0),
                    errors_received=max(now.errin - prev.errin, 0),
                    errors_transmitted=max(now.errout - prev.errout, 0),
                    total_bytes_received=now.bytes_recv,
                    total_bytes_transmitted=now.bytes_sent,
                    total_packets_received=now.packets_recv,
                    total_packets_transmitted=now.packets_sent,
                    total_errors_received=now.errin,
                    total_errors_transmitted=now.errout,
                )
            )
        self._prev_net = dict(counters)
        return interfaces

    def single_process(self, pid: int) -> SingleProcessView | None:
        """Collect the detailed view of one process, or None if it is gone."""
        try:
            proc = self._inspect(pid)
            with proc.oneshot():
                raw = _raw_from_process(proc)
                disk_usage = self._disk_usage(proc)
                task_ids = self._task_ids(proc)
        except _SKIPPED:
            return None

        tasks = tuple(
            record for record in (self._task_record(tid) for tid in task_ids) if record is not None
        )
        return SingleProcessView(
            process=build_process_record(raw, self._cgroup_reader),
            tasks=tasks,
            disk_usage=disk_usage,
            start_time=raw.start_time,
            running_time=max(time.time() - raw.start_time, 0.0),
            cwd=raw.cwd,
            parent_pid=raw.parent_pid,
        )

    def _inspect(self, pid: int) -> psutil.Process:
        if self._inspected is None or self._inspected.pid != pid:
            self._inspected = psutil.Process(pid)
            self._prev_disk = None
        return self._inspected

    def _disk_usage(self, proc: psutil.Process) -> DiskUsage:
        try:
            io = proc.io_counters()
        except (*_SKIPPED, AttributeError):
            return DiskUsage()
        prev_read, prev_write = self._prev_disk or (io.read_bytes, io.write_bytes)
        self._prev_disk = (io.read_bytes, io.write_bytes)
        return DiskUsage(
            total_read_bytes=io.read_bytes,
            total_written_bytes=io.write_bytes,
            read_bytes=max(io.read_bytes - prev_read, 0),
            written_bytes=max(io.write_bytes - prev_write, 0),
        )

    @staticmethod
    def _task_ids(proc: psutil.Process) -> list[int]:
        try:
            return [thread.id for thread in proc.threads() if thread.id != proc.pid]
        except psutil.AccessDenied:
            return []

    def _task_record(self, tid: int) -> ProcessRecord | None:
        try:
            task = psutil.Process(tid)
            with task.oneshot():
                raw = _raw_from_process(task)
        except _SKIPPED:
            logger.debug("Skipping task %d", tid)
            return None
        return build_process_record(raw, self._cgroup_reader)


def _raw_from_info(info: dict) -> RawProcess:
    """Build a RawProcess from a ``process_iter`` info dict, with safe defaults."""
    mem_info = info.get("memory_info")
    return RawProcess(
        pid=info.get("pid", 0),
        name=info.get("name") or "",
        cpu_percent=info.get("cpu_percent") or 0.0,
        memory_rss=mem_info.rss if mem_info else 0,
        status=info.get("status") or "?",
        parent_pid=info.get("ppid"),
    )


def _raw_from_process(proc: psutil.Process) -> RawProcess:
    """Build a RawProcess from a live handle; call inside ``oneshot()``."""
    try:
        cwd = proc.cwd() or None
    except _SKIPPED:
        cwd = None
    return RawProcess(
        pid=proc.pid,
        name=proc.name(),
        cpu_percent=proc.cpu_percent(),
        memory_rss=proc.memory_info().rss,
        status=proc.status(),
        parent_pid=proc.ppid(),
        start_time=proc.create_time(),
        cwd=cwd,
    )
