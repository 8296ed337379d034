"""Interactive launcher: pick a feature, run it, come back to the menu on quit."""

import logging
import sys
from collections.abc import Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from stomata.config import DashboardConfig
from stomata.navigation import FEATURES, Feature, FeatureMenu

logger = logging.getLogger(__name__)

DESCRIPTIONS = {
    Feature.CORE: "System dashboard: metrics, processes, network",
    Feature.WEB3: "Address validation and portfolio lookups",
}


def render_menu(menu: FeatureMenu) -> str:
    lines = ["Select a feature (enter to launch, q to quit)", ""]
    for i, feature in enumerate(FEATURES):
        label = f" {i + 1}. {feature.value:<6} {DESCRIPTIONS[feature]} "
        lines.append(f"[b reverse]{label}[/]" if i == menu.selected else label)
    return "\n".join(lines)


class LauncherApp(App[Feature | None]):
    """Feature selection menu; exits with the chosen feature, or None on quit."""

    TITLE = "stomata"
    SUB_TITLE = "Feature selection"

    CSS = """
    #feature-menu {
        padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("q", "menu_key('q')", "Quit", priority=True),
        Binding("escape", "menu_key('escape')", "Quit", show=False, priority=True),
        Binding("enter", "menu_key('enter')", "Launch", priority=True),
        Binding("up", "menu_key('up')", "Up", show=False, priority=True),
        Binding("down", "menu_key('down')", "Down", show=False, priority=True),
        Binding("k", "menu_key('k')", "Up", show=False, priority=True),
        Binding("j", "menu_key('j')", "Down", show=False, priority=True),
        Binding("tab", "menu_key('tab')", "Down", show=False, priority=True),
        Binding("shift+tab", "menu_key('shift+tab')", "Up", show=False, priority=True),
        *(
            Binding(str(i + 1), f"menu_key('{i + 1}')", feature.value, show=False, priority=True)
            for i, feature in enumerate(FEATURES)
        ),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.menu = FeatureMenu()

    def compose(self) -> ComposeResult:
        yield Static(render_menu(self.menu), id="feature-menu")
        yield Footer()

    def action_menu_key(self, key: str) -> None:
        """Apply a menu key; leave the app once a feature is chosen or on quit."""
        if not self.menu.handle_key(key):
            return
        if self.menu.stopped:
            self.exit(None)
        elif self.menu.chosen is not None:
            self.exit(self.menu.chosen)
        else:
            self.query_one("#feature-menu", Static).update(render_menu(self.menu))


def run_feature(feature: Feature, config: DashboardConfig) -> None:
    """Run one feature's app until its quit key is pressed."""
    if feature is Feature.WEB3:
        from stomata.web3_app import Web3App

        Web3App(config).run()
    else:
        from stomata.app import StomataApp

        StomataApp(config).run()


def run_interactive(
    config: DashboardConfig,
    select: Callable[[], Feature | None] | None = None,
    run: Callable[[Feature, DashboardConfig], None] = run_feature,
) -> int:
    """
    Alternate between the menu and the chosen feature until the menu is quit.

    A feature that fails is reported and the menu is shown again.

    Args:
        config: Runtime configuration handed to every feature.
        select: Shows the menu and returns the choice; a LauncherApp by default.
        run: Runs one feature to completion.

    Returns:
        The number of features launched.
    """
    if select is None:
        select = lambda: LauncherApp().run()  # noqa: E731

    launched = 0
    while (feature := select()) is not None:
        logger.info("Launching %s", feature.value)
        launched += 1
        try:
            run(feature, config)
        except Exception as e:
            logger.exception("%s feature failed", feature.value)
            print(f"stomata: {feature.value} feature failed: {e}", file=sys.stderr)
    return launched
