"""stomata - Textual dashboard application."""

from datetime import datetime

from textual.app import App, ComposeResult, ScreenStackError
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.widgets import ContentSwitcher, DataTable, Footer, Sparkline, Static

from stomata.config import DashboardConfig
from stomata.engine import DashboardEngine, DashboardView, InterfaceView
from stomata.loop import KeyEvent, QueueEventSource, RefreshLoop
from stomata.models import ProcessRecord
from stomata.navigation import MAIN_TABS, Page, SingleProcess
from stomata.provider import MetricsProvider, PsutilProvider

BAR_WIDTH = 20


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_duration(seconds: float) -> str:
    """Format a duration as ``[N days, ]HH:MM:SS``."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def render_bar(percent: float, color: str) -> str:
    """Render a percentage as a fixed-width bar with escaped brackets."""
    filled = min(max(int(percent / (100 / BAR_WIDTH)), 0), BAR_WIDTH)
    bar = f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (BAR_WIDTH - filled)
    return f"\\[{bar}]"


class TabBar(Static):
    """Row of page titles with the active one highlighted."""

    DEFAULT_CSS = """
    TabBar {
        height: 1;
        background: $surface;
    }
    """

    def show(self, tab_index: int, titles: list[str]) -> None:
        parts = []
        for i, title in enumerate(titles):
            label = f" {i + 1} {title} "
            parts.append(f"[b reverse]{label}[/]" if i == tab_index else label)
        self.update(" ".join(parts))


class OverviewPanel(Static):
    """Host description and uptime."""

    def show(self, view: DashboardView) -> None:
        host = view.host
        if host is None or view.system is None:
            self.update("Collecting system information...")
            return
        boot = datetime.fromtimestamp(host.boot_time).strftime("%Y-%m-%d %H:%M:%S")
        self.update(
            f"Hostname:     {host.hostname}\n"
            f"OS:           {host.os_name}\n"
            f"Kernel:       {host.kernel_release}\n"
            f"Architecture: {host.architecture}\n"
            f"CPUs:         {host.cpu_count}\n"
            f"Booted:       {boot}\n"
            f"Uptime:       {format_duration(view.system.uptime_seconds)}\n"
            f"Processes:    {len(view.processes)}"
        )


class MetricsPanel(Vertical):
    """Per-core CPU bars, memory and swap gauges, CPU history."""

    DEFAULT_CSS = """
    MetricsPanel Horizontal {
        height: auto;
    }
    #cpu-bars, #mem-bars {
        width: 1fr;
        padding: 1;
    }
    #cpu-history {
        height: 6;
        margin: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Horizontal(
            Static("Loading CPU info...", id="cpu-bars"),
            Static("Loading memory info...", id="mem-bars"),
        )
        yield Static("CPU history", id="cpu-history-title")
        yield Sparkline([], summary_function=max, id="cpu-history")

    def show(self, view: DashboardView) -> None:
        system = view.system
        if system is None:
            return
        lines = [
            f"CPU{i:<2} {render_bar(usage, 'green')} {usage:5.1f}%"
            for i, usage in enumerate(system.cpu_percent_per_core)
        ]
        self.query_one("#cpu-bars", Static).update("\n".join(lines))

        gb = 1024**3
        load = system.load_avg
        self.query_one("#mem-bars", Static).update(
            f"Mem {render_bar(system.memory_percent, 'cyan')} "
            f"{system.memory_used / gb:.1f}G/{system.memory_total / gb:.1f}G\n"
            f"Swp {render_bar(system.swap_percent if system.swap_total else 0.0, 'yellow')} "
            f"{system.swap_used / gb:.1f}G/{system.swap_total / gb:.1f}G\n"
            f"Load average: {load[0]:.2f} {load[1]:.2f} {load[2]:.2f}"
        )
        self.query_one("#cpu-history-title", Static).update(f"CPU history: {system.cpu_percent:5.1f}%")
        self.query_one("#cpu-history", Sparkline).data = list(view.cpu_history)


class ProcessTable(DataTable):
    """
    Process rows keyed by PID.

    Rows that survive between redraws are updated with update_cell instead
    of re-rendering the whole table; rows are re-sorted only when the
    display order changes.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, cursor_type="row", **kwargs)
        self.can_focus = False
        self._current_pids: list[int] = []
        self.add_column("PID", key="pid", width=8)
        self.add_column("Name", key="name", width=24)
        self.add_column("CPU%", key="cpu", width=7)
        self.add_column("Memory", key="mem", width=8)
        self.add_column("Status", key="status", width=10)
        self.add_column("Cgroup", key="cgroup")

    def update_processes(self, processes: tuple[ProcessRecord, ...]) -> None:
        """Bring the rows in line with ``processes``, keeping their order."""
        new_pids = {proc.pid for proc in processes}
        known = set(self._current_pids)

        for pid in known - new_pids:
            self.remove_row(str(pid))

        for proc in processes:
            if proc.pid in known:
                self._update_row(proc)
            else:
                self._add_row(proc)

        # surviving rows keep their place, new rows are appended
        table_order = [pid for pid in self._current_pids if pid in new_pids]
        table_order.extend(proc.pid for proc in processes if proc.pid not in known)
        order = [proc.pid for proc in processes]
        if table_order != order:
            rank = {str(pid): i for i, pid in enumerate(order)}
            self.sort("pid", key=rank.__getitem__)
        self._current_pids = order

    def _update_row(self, proc: ProcessRecord) -> None:
        row_key = str(proc.pid)
        for column, value in zip(("pid", "name", "cpu", "mem", "status", "cgroup"), _cells(proc)):
            self.update_cell(row_key, column, value)

    def _add_row(self, proc: ProcessRecord) -> None:
        self.add_row(*_cells(proc), key=str(proc.pid))


def _cells(proc: ProcessRecord) -> tuple[str, ...]:
    return (
        str(proc.pid),
        proc.name[:24],
        f"{proc.cpu_percent:5.1f}",
        format_bytes(proc.memory_rss),
        proc.status,
        proc.cgroup_path[:40],
    )


class ProcessPanel(Vertical):
    """Cgroup summary line and the sortable process table."""

    DEFAULT_CSS = """
    #cgroup-summary {
        height: auto;
        max-height: 4;
        padding: 0 1;
    }
    #process-table {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("", id="cgroup-summary")
        yield ProcessTable(id="process-table")

    def show(self, view: DashboardView) -> None:
        top = ", ".join(
            f"{group.path} ({group.process_count} procs, {group.total_cpu:.1f}%)"
            for group in view.cgroups[:3]
        )
        self.query_one("#cgroup-summary", Static).update(
            f"Sort: {view.sort_key.value.upper()}  |  Top cgroups: {top or '-'}"
        )
        table = self.query_one("#process-table", ProcessTable)
        table.update_processes(view.processes)
        if view.processes:
            table.move_cursor(row=view.cursor)


class SingleProcessPanel(Horizontal):
    """Detailed view of one process: info, disk I/O trends and its tasks."""

    DEFAULT_CSS = """
    SingleProcessPanel > Vertical {
        width: 1fr;
    }
    #process-info, #process-extra {
        height: auto;
        padding: 1;
        border: round $primary;
    }
    #disk-read, #disk-write {
        height: 5;
    }
    #task-table {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield Vertical(
            Static("", id="process-info"),
            Static("", id="process-extra"),
        )
        yield Vertical(
            Static("Disk read bytes", id="disk-read-title"),
            Sparkline([], summary_function=max, id="disk-read"),
            Static("Disk write bytes", id="disk-write-title"),
            Sparkline([], summary_function=max, id="disk-write"),
            ProcessTable(id="task-table"),
        )

    def show(self, view: DashboardView, pid: int) -> None:
        detail = view.single_process
        info = self.query_one("#process-info", Static)
        extra = self.query_one("#process-extra", Static)
        if detail is None:
            info.update(f"PID: {pid}\nWaiting for data (process may have exited)...")
            extra.update("Press Esc to return to the process list")
            return

        proc = detail.process
        info.update(
            f"PID: {proc.pid}\nName: {proc.name}\nStatus: {proc.status}\n"
            f"CPU: {render_bar(min(proc.cpu_percent, 100.0), 'green')} {proc.cpu_percent:5.1f}%\n"
            f"Memory: {format_bytes(proc.memory_rss)}"
        )
        started = datetime.fromtimestamp(detail.start_time).strftime("%Y-%m-%d %H:%M:%S")
        lines = [
            f"Start time: {started}",
            f"Running time: {format_duration(detail.running_time)}",
            f"CWD: {detail.cwd or ''}",
            f"Total read bytes: {format_bytes(detail.disk_usage.total_read_bytes)}",
            f"Total written bytes: {format_bytes(detail.disk_usage.total_written_bytes)}",
            f"Latest read bytes: {detail.disk_usage.read_bytes}",
            f"Latest written bytes: {detail.disk_usage.written_bytes}",
            f"Cgroup: {proc.cgroup_path}",
        ]
        if detail.parent_pid is not None:
            lines.append(f"Parent PID: {detail.parent_pid}")
        lines.extend(
            f"  {controller}: {path}" for controller, path in sorted(proc.cgroup_controllers.items())
        )
        extra.update("\n".join(lines))

        self.query_one("#disk-read", Sparkline).data = list(view.disk_read_history)
        self.query_one("#disk-write", Sparkline).data = list(view.disk_write_history)
        self.query_one("#task-table", ProcessTable).update_processes(detail.tasks)


class InterfacePanel(Vertical):
    """Totals and traffic sparklines of one network interface."""

    DEFAULT_CSS = """
    InterfacePanel {
        height: auto;
        border: round $primary;
        padding: 0 1;
    }
    InterfacePanel Sparkline {
        height: 3;
    }
    """

    SERIES = (
        ("received_bytes", "Bytes received"),
        ("transmitted_bytes", "Bytes transmitted"),
        ("packets_received", "Packets received"),
        ("packets_transmitted", "Packets transmitted"),
    )

    def compose(self) -> ComposeResult:
        yield Static("", classes="totals")
        for attr, title in self.SERIES:
            yield Static(title, classes=f"title-{attr}")
            yield Sparkline([], summary_function=max, classes=f"spark-{attr}")

    def show(self, interface: InterfaceView) -> None:
        totals = interface.totals
        self.border_title = interface.name
        self.query_one(".totals", Static).update(
            f"Total received: {format_bytes(totals.bytes_received)} "
            f"({totals.packets_received} packets, {totals.errors_received} errors)\n"
            f"Total transmitted: {format_bytes(totals.bytes_transmitted)} "
            f"({totals.packets_transmitted} packets, {totals.errors_transmitted} errors)"
        )
        for attr, title in self.SERIES:
            values = getattr(interface, attr)
            latest = values[-1] if values else 0
            self.query_one(f".title-{attr}", Static).update(f"{title}: {latest}")
            self.query_one(f".spark-{attr}", Sparkline).data = list(values)


class NetworkPanel(VerticalScroll):
    """One InterfacePanel per interface ever seen."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._panels: dict[str, InterfacePanel] = {}

    def show(self, view: DashboardView) -> None:
        for interface in view.interfaces:
            panel = self._panels.get(interface.name)
            if panel is None:
                panel = InterfacePanel()
                self._panels[interface.name] = panel
                self.mount(panel)
                # children exist only after the mount is processed
                self.call_after_refresh(panel.show, interface)
            else:
                panel.show(interface)


class StomataApp(App):
    """Main stomata dashboard."""

    TITLE = "stomata"
    SUB_TITLE = "System Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }
    ContentSwitcher {
        height: 1fr;
    }
    #overview {
        padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("q", "send_key('q')", "Quit", priority=True),
        Binding("tab", "send_key('tab')", "Next tab", priority=True),
        Binding("shift+tab", "send_key('shift+tab')", "Previous tab", priority=True),
        Binding("enter", "send_key('enter')", "Inspect", priority=True),
        Binding("escape", "send_key('escape')", "Back", priority=True),
        Binding("backspace", "send_key('backspace')", "Back", show=False, priority=True),
        Binding("s", "send_key('s')", "Sort", priority=True),
        Binding("up", "send_key('up')", "Up", show=False, priority=True),
        Binding("down", "send_key('down')", "Down", show=False, priority=True),
        Binding("k", "send_key('k')", "Up", show=False, priority=True),
        Binding("j", "send_key('j')", "Down", show=False, priority=True),
        *(
            Binding(str(digit), f"send_key('{digit}')", f"Tab {digit}", show=False, priority=True)
            for digit in range(10)
        ),
    ]

    def __init__(
        self,
        config: DashboardConfig | None = None,
        provider: MetricsProvider | None = None,
    ) -> None:
        """
        Initialize the StomataApp.

        Args:
            config: Runtime configuration.
            provider: Metrics provider; the local machine via psutil by default.
        """
        super().__init__()
        self.config = config or DashboardConfig()
        self.engine = DashboardEngine(provider or PsutilProvider(), self.config)
        self.key_events = QueueEventSource()
        self.refresh_loop = RefreshLoop(
            self.engine, self.key_events, self.render_view, self.config.interval
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield TabBar(id="tabs")
        with ContentSwitcher(initial="overview"):
            yield OverviewPanel("Collecting system information...", id="overview")
            yield MetricsPanel(id="metrics")
            yield ProcessPanel(id="processes")
            yield SingleProcessPanel(id="single-process")
            yield NetworkPanel(id="network")
        yield Footer()

    def on_mount(self) -> None:
        """Start the refresh loop when the app is mounted."""
        self.run_worker(self._drive(), name="refresh-loop", exclusive=True)

    def on_unmount(self) -> None:
        """Stop the refresh loop once the app is torn down."""
        self.engine.stop()

    async def _drive(self) -> None:
        await self.refresh_loop.run()
        if self.is_running:
            self.exit()

    def action_send_key(self, key: str) -> None:
        """Forward a bound key to the refresh loop."""
        self.key_events.put(KeyEvent(key))

    def render_view(self) -> None:
        """Render the engine's current view; the only place pages are dispatched."""
        if not self.is_running:
            return
        try:
            self._show(self.engine.view())
        except (NoMatches, ScreenStackError):
            pass  # Widgets not mounted yet or already removed

    def _show(self, view: DashboardView) -> None:
        self.query_one(TabBar).show(view.tab_index, [page.value for page in MAIN_TABS])
        switcher = self.query_one(ContentSwitcher)

        match view.page:
            case Page.OVERVIEW:
                self.query_one(OverviewPanel).show(view)
                switcher.current = "overview"
            case Page.METRICS:
                self.query_one(MetricsPanel).show(view)
                switcher.current = "metrics"
            case Page.PROCESS_LIST:
                self.query_one(ProcessPanel).show(view)
                switcher.current = "processes"
            case Page.NETWORK:
                self.query_one(NetworkPanel).show(view)
                switcher.current = "network"
            case SingleProcess(pid=pid):
                self.query_one(SingleProcessPanel).show(view, pid)
                switcher.current = "single-process"
