"""Live-metrics state engine: owns the trackers and the navigation state."""

import logging
from dataclasses import dataclass, field

from stomata.cgroups import CgroupCatalog, CgroupReader, CgroupSummary, read_cgroups
from stomata.config import DashboardConfig
from stomata.loop import KeyEvent
from stomata.models import HostInfo, ProcessRecord, SingleProcessView, SystemSnapshot
from stomata.navigation import (
    CurrentPage,
    NavigationState,
    SingleProcess,
    SortKey,
    Submission,
    Web3NavigationState,
    Web3Page,
)
from stomata.provider import MetricsProvider
from stomata.series import BoundedSeries
from stomata.trackers import (
    InterfaceTotals,
    NetworkInterfaceHistory,
    NetworkTracker,
    SingleProcessTracker,
)
from stomata.wallet.address import AddressValidator, ValidationResult
from stomata.wallet.portfolio import Portfolio, PortfolioDispatcher
from stomata.wallet.rpc import RpcError

logger = logging.getLogger(__name__)

_SORT_ORDER = {
    SortKey.CPU: (lambda p: p.cpu_percent, True),
    SortKey.MEM: (lambda p: p.memory_rss, True),
    SortKey.PID: (lambda p: p.pid, False),
    SortKey.NAME: (lambda p: p.name.lower(), False),
}


def sort_processes(processes: list[ProcessRecord], sort_key: SortKey) -> list[ProcessRecord]:
    """Sort process records for the table; ties broken by PID."""
    key_func, reverse = _SORT_ORDER[sort_key]
    by_pid = sorted(processes, key=lambda p: p.pid)
    return sorted(by_pid, key=key_func, reverse=reverse)


@dataclass(slots=True, frozen=True)
class InterfaceView:
    """Read-only history of one interface."""

    name: str
    totals: InterfaceTotals
    received_bytes: tuple[int, ...]
    transmitted_bytes: tuple[int, ...]
    packets_received: tuple[int, ...]
    packets_transmitted: tuple[int, ...]
    errors_received: tuple[int, ...]
    errors_transmitted: tuple[int, ...]


@dataclass(slots=True, frozen=True)
class DashboardView:
    """Everything the renderer needs for one frame of the dashboard."""

    page: CurrentPage
    tab_index: int
    cursor: int
    selected_pid: int | None
    sort_key: SortKey
    host: HostInfo | None = None
    system: SystemSnapshot | None = None
    processes: tuple[ProcessRecord, ...] = ()
    cgroups: tuple[CgroupSummary, ...] = ()
    interfaces: tuple[InterfaceView, ...] = ()
    single_process: SingleProcessView | None = None
    disk_read_history: tuple[int, ...] = ()
    disk_write_history: tuple[int, ...] = ()
    cpu_history: tuple[float, ...] = ()
    tick_count: int = 0


class DashboardEngine:
    """
    State engine behind the system dashboard.

    ``tick`` acquires every snapshot first and then updates the trackers,
    so a rendered view never mixes two snapshots. ``handle_key`` only
    touches navigation state.
    """

    def __init__(
        self,
        provider: MetricsProvider,
        config: DashboardConfig | None = None,
        cgroup_reader: CgroupReader = read_cgroups,
    ) -> None:
        """
        Initialize the engine.

        Args:
            provider: Source of OS snapshots.
            config: Runtime configuration; defaults when omitted.
            cgroup_reader: Callable returning the cgroup groups of a PID.
        """
        self.config = config or DashboardConfig()
        self.navigation = NavigationState()
        self._provider = provider
        self._catalog = CgroupCatalog(cgroup_reader)
        self.network = NetworkTracker(self.config.network_history, self.config.clamp_quantile)
        self.single_process = SingleProcessTracker(self.config.single_process_history)
        self.cpu_history = BoundedSeries(self.config.cpu_history, self.config.clamp_quantile)
        self._host: HostInfo | None = None
        self._system: SystemSnapshot | None = None
        self._processes: list[ProcessRecord] = []
        self._single_view: SingleProcessView | None = None
        self._tick_count = 0

    @property
    def stopped(self) -> bool:
        return self.navigation.stopped

    def stop(self) -> None:
        """End the refresh loop, as the quit key does."""
        self.navigation.stopped = True

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def tick(self) -> None:
        """Acquire fresh snapshots and feed them into the trackers."""
        if self._host is None:
            self._host = self._provider.host_info()
        system = self._provider.system()
        processes = self._catalog.build(self._provider.processes())
        interfaces = self._provider.network()
        page = self.navigation.page
        single_view = (
            self._provider.single_process(page.pid) if isinstance(page, SingleProcess) else None
        )

        self._system = system
        self.cpu_history.push(system.cpu_percent)
        self.network.update(interfaces)
        self._processes = sort_processes(processes, self.navigation.sort_key)
        self.navigation.sync(self._pids())
        self._single_view = single_view
        if single_view is not None:
            self.single_process.update(single_view.process.pid, single_view.disk_usage)
        self._tick_count += 1

    def handle_key(self, event: KeyEvent) -> bool:
        """Dispatch a key press to the navigation state."""
        sort_key = self.navigation.sort_key
        changed = self.navigation.handle_key(event.key, self._pids())
        if self.navigation.sort_key is not sort_key:
            self._processes = sort_processes(self._processes, self.navigation.sort_key)
            self.navigation.sync(self._pids())
        page = self.navigation.page
        if not isinstance(page, SingleProcess) or (
            self._single_view is not None and self._single_view.process.pid != page.pid
        ):
            self._single_view = None
        return changed

    def collect(self) -> bool:
        """No background work on the dashboard."""
        return False

    def view(self) -> DashboardView:
        """Build the read-only view of the current state."""
        nav = self.navigation
        tracked = isinstance(nav.page, SingleProcess) and self.single_process.pid == nav.page.pid
        return DashboardView(
            page=nav.page,
            tab_index=nav.tab_index,
            cursor=nav.cursor,
            selected_pid=nav.selected_pid,
            sort_key=nav.sort_key,
            host=self._host,
            system=self._system,
            processes=tuple(self._processes),
            cgroups=tuple(CgroupCatalog.summarize(self._processes)),
            interfaces=tuple(
                _interface_view(name, history) for name, history in self.network.histories().items()
            ),
            single_process=self._single_view,
            disk_read_history=tuple(self.single_process.read_history) if tracked else (),
            disk_write_history=tuple(self.single_process.write_history) if tracked else (),
            cpu_history=tuple(self.cpu_history),
            tick_count=self._tick_count,
        )

    def _pids(self) -> list[int]:
        return [process.pid for process in self._processes]


def _interface_view(name: str, history: NetworkInterfaceHistory) -> InterfaceView:
    return InterfaceView(
        name=name,
        totals=history.totals,
        received_bytes=tuple(history.received_bytes),
        transmitted_bytes=tuple(history.transmitted_bytes),
        packets_received=tuple(history.packets_received),
        packets_transmitted=tuple(history.packets_transmitted),
        errors_received=tuple(history.errors_received),
        errors_transmitted=tuple(history.errors_transmitted),
    )


@dataclass
class PortfolioState:
    """What the portfolio panel shows for the last submitted address."""

    address: str | None = None
    loading: bool = False
    portfolio: Portfolio | None = None
    error: str | None = None


@dataclass(slots=True, frozen=True)
class Web3View:
    """Everything the renderer needs for one frame of the web3 tool."""

    page: Web3Page
    tab_index: int
    editing: bool
    input_text: str
    input_cursor: int
    validations: tuple[tuple[str, ValidationResult], ...]
    portfolio: PortfolioState = field(default_factory=PortfolioState)


class Web3Engine:
    """
    State engine behind the web3 tool.

    Address validation is local and immediate. Portfolio lookups go through
    the dispatcher and land here through ``collect``.
    """

    MAX_VALIDATIONS = 20

    def __init__(self, dispatcher: PortfolioDispatcher) -> None:
        self.navigation = Web3NavigationState()
        self._dispatcher = dispatcher
        self._validations: list[tuple[str, ValidationResult]] = []
        self.portfolio = PortfolioState()

    @property
    def stopped(self) -> bool:
        return self.navigation.stopped

    def stop(self) -> None:
        """End the refresh loop, as the quit key does."""
        self.navigation.stopped = True

    def handle_key(self, event: KeyEvent) -> bool:
        submission = self.navigation.handle_key(event.key, event.character)
        if submission is not None:
            self._submit(submission)
        return True

    def tick(self) -> None:
        """Nothing to sample; pending lookups are picked up by ``collect``."""

    def collect(self) -> bool:
        """Apply finished portfolio lookups; True if anything arrived."""
        results = self._dispatcher.drain()
        for result in results:
            if result.address != self.portfolio.address:
                continue  # superseded by a newer submission
            self.portfolio = PortfolioState(
                address=result.address,
                portfolio=result.portfolio,
                error=_describe_error(result.error) if result.error is not None else None,
            )
        return bool(results)

    def view(self) -> Web3View:
        field_ = self.navigation.input_field
        return Web3View(
            page=self.navigation.page,
            tab_index=self.navigation.tab_index,
            editing=field_.editing,
            input_text=field_.text,
            input_cursor=field_.cursor,
            validations=tuple(reversed(self._validations)),
            portfolio=self.portfolio,
        )

    def _submit(self, submission: Submission) -> None:
        result = AddressValidator.validate(submission.text)
        if submission.page is Web3Page.ADDRESS_VALIDATION:
            self._validations.append((submission.text, result))
            del self._validations[: -self.MAX_VALIDATIONS]
            return

        if not result.is_valid or result.checksummed is None:
            self.portfolio = PortfolioState(address=submission.text, error=result.describe())
            return
        self.portfolio = PortfolioState(address=result.checksummed, loading=True)
        self._dispatcher.dispatch(result.checksummed)


def _describe_error(error: RpcError) -> str:
    return f"{type(error).__name__}: {error}"
