"""stomata web3 - address validation and portfolio lookups."""

from rich.markup import escape
from textual import events
from textual.app import App, ComposeResult, ScreenStackError
from textual.binding import Binding
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import ContentSwitcher, Footer, Static

from stomata.app import TabBar
from stomata.config import DashboardConfig
from stomata.engine import PortfolioState, Web3Engine, Web3View
from stomata.loop import KeyEvent, QueueEventSource, RefreshLoop
from stomata.navigation import WEB3_TABS, Web3Page
from stomata.wallet.portfolio import PortfolioDispatcher
from stomata.wallet.rpc import JsonRpcClient


def render_input(view: Web3View, placeholder: str) -> str:
    """Input line with a visible cursor while editing."""
    if not view.editing:
        text = escape(view.input_text) if view.input_text else f"[dim]{placeholder}[/dim]"
        return f"> {text}    [dim](press e to edit)[/dim]"
    before = escape(view.input_text[: view.input_cursor])
    after = escape(view.input_text[view.input_cursor :])
    return f"> {before}[reverse] [/reverse]{after}    [dim](enter to submit, esc to stop editing)[/dim]"


def render_portfolio(state: PortfolioState) -> str:
    if state.address is None:
        return "Enter an address to look up its portfolio."
    if state.loading:
        return f"Looking up {state.address}..."
    if state.error is not None:
        return f"[red]Lookup failed for {escape(state.address)}[/red]\n{escape(state.error)}"
    portfolio = state.portfolio
    if portfolio is None:
        return ""
    return (
        f"Address:           {portfolio.address}\n"
        f"Chain ID:          {portfolio.chain_id}\n"
        f"Account type:      {portfolio.account_type.value}\n"
        f"Native balance:    {portfolio.native_balance} ETH\n"
        f"Transaction count: {portfolio.transaction_count}"
    )


class InputPanel(Vertical):
    """Input line above a result area."""

    DEFAULT_CSS = """
    InputPanel .input {
        height: 3;
        border: round $primary;
        padding: 0 1;
    }
    InputPanel .result {
        padding: 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("", classes="input")
        yield Static("", classes="result")

    def show(self, input_line: str, result: str) -> None:
        self.query_one(".input", Static).update(input_line)
        self.query_one(".result", Static).update(result)


class Web3App(App):
    """Web3 utilities: address validation and portfolio lookups."""

    TITLE = "stomata"
    SUB_TITLE = "Web3"

    CSS = """
    ContentSwitcher {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("tab", "send_key('tab')", "Next tab", priority=True),
        Binding("shift+tab", "send_key('shift+tab')", "Previous tab", priority=True),
    ]

    def __init__(
        self,
        config: DashboardConfig | None = None,
        dispatcher: PortfolioDispatcher | None = None,
    ) -> None:
        super().__init__()
        self.config = config or DashboardConfig()
        if dispatcher is None:
            dispatcher = PortfolioDispatcher(
                lambda: JsonRpcClient(self.config.rpc_url, timeout=self.config.rpc_timeout)
            )
        self.engine = Web3Engine(dispatcher)
        self.key_events = QueueEventSource()
        self.refresh_loop = RefreshLoop(
            self.engine, self.key_events, self.render_view, self.config.interval
        )

    def compose(self) -> ComposeResult:
        yield TabBar(id="tabs")
        with ContentSwitcher(initial="address-validation"):
            yield InputPanel(id="address-validation")
            yield InputPanel(id="portfolio")
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self._drive(), name="refresh-loop", exclusive=True)

    def on_unmount(self) -> None:
        self.engine.stop()

    async def _drive(self) -> None:
        await self.refresh_loop.run()
        if self.is_running:
            self.exit()

    def on_key(self, event: events.Key) -> None:
        """Forward every other key, with its character, to the refresh loop."""
        self.key_events.put(KeyEvent(event.key, event.character))
        event.stop()
        event.prevent_default()

    def action_send_key(self, key: str) -> None:
        self.key_events.put(KeyEvent(key))

    def render_view(self) -> None:
        if not self.is_running:
            return
        try:
            self._show(self.engine.view())
        except (NoMatches, ScreenStackError):
            pass  # Widgets not mounted yet or already removed

    def _show(self, view: Web3View) -> None:
        self.query_one(TabBar).show(view.tab_index, [page.value for page in WEB3_TABS])
        switcher = self.query_one(ContentSwitcher)

        match view.page:
            case Web3Page.ADDRESS_VALIDATION:
                results = "\n".join(
                    f"{escape(text)}\n  {result.describe()}" for text, result in view.validations
                )
                self.query_one("#address-validation", InputPanel).show(
                    render_input(view, "0x-prefixed address"),
                    results or "Validate an EVM address and get its EIP-55 checksum form.",
                )
                switcher.current = "address-validation"
            case Web3Page.PORTFOLIO:
                self.query_one("#portfolio", InputPanel).show(
                    render_input(view, "0x-prefixed address"),
                    render_portfolio(view.portfolio),
                )
                switcher.current = "portfolio"
