"""Shared fixtures for stomata tests."""

from queue import Queue

import pytest

from stomata.models import (
    DiskUsage,
    HostInfo,
    InterfaceCounters,
    ProcessRecord,
    RawProcess,
    SingleProcessView,
    SystemSnapshot,
)
from stomata.wallet.portfolio import PortfolioDispatcher, PortfolioResult


def make_system(cpu: float = 10.0) -> SystemSnapshot:
    return SystemSnapshot(
        cpu_percent_per_core=(cpu, cpu),
        cpu_percent=cpu,
        memory_total=16 * 1024**3,
        memory_used=8 * 1024**3,
        memory_percent=50.0,
        swap_total=4 * 1024**3,
        swap_used=0,
        swap_percent=0.0,
        load_avg=(1.0, 0.5, 0.25),
        uptime_seconds=3600.0,
    )


class FakeProvider:
    """Scripted metrics provider; each call returns the configured values."""

    def __init__(self) -> None:
        self.raw_processes = [
            RawProcess(pid=100, name="alpha", cpu_percent=5.0, memory_rss=1000, status="running"),
            RawProcess(pid=200, name="beta", cpu_percent=50.0, memory_rss=3000, status="sleeping"),
            RawProcess(pid=300, name="gamma", cpu_percent=20.0, memory_rss=2000, status="sleeping"),
        ]
        self.interfaces = [InterfaceCounters(name="eth0", bytes_received=100, total_bytes_received=1000)]
        self.disk_usage = DiskUsage(read_bytes=10, written_bytes=20)
        self.system_calls = 0
        self.single_calls: list[int] = []

    def host_info(self) -> HostInfo:
        return HostInfo(
            hostname="testhost",
            os_name="Linux",
            kernel_release="6.0.0",
            architecture="x86_64",
            cpu_count=2,
            boot_time=0.0,
        )

    def system(self) -> SystemSnapshot:
        self.system_calls += 1
        return make_system()

    def processes(self) -> list[RawProcess]:
        return list(self.raw_processes)

    def network(self) -> list[InterfaceCounters]:
        return list(self.interfaces)

    def single_process(self, pid: int) -> SingleProcessView | None:
        self.single_calls.append(pid)
        raw = next((p for p in self.raw_processes if p.pid == pid), None)
        if raw is None:
            return None
        return SingleProcessView(
            process=ProcessRecord(
                pid=raw.pid,
                name=raw.name,
                cpu_percent=raw.cpu_percent,
                memory_rss=raw.memory_rss,
                status=raw.status,
            ),
            tasks=(),
            disk_usage=self.disk_usage,
            start_time=0.0,
            running_time=10.0,
        )


class FakeDispatcher(PortfolioDispatcher):
    """Dispatcher that records addresses instead of starting threads."""

    def __init__(self) -> None:
        super().__init__(client_factory=lambda: None, result_queue=Queue())
        self.dispatched: list[str] = []

    def dispatch(self, address: str) -> None:
        self.dispatched.append(address)

    def deliver(self, result: PortfolioResult) -> None:
        self._queue.put(result)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def fake_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()
