"""Page navigation state machines for the dashboard and the web3 tool."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

QUIT_KEY = "q"
NEXT_TAB_KEY = "tab"
PREVIOUS_TAB_KEY = "shift+tab"


class Page(Enum):
    """Main dashboard tabs, in tab order."""

    OVERVIEW = "Overview"
    METRICS = "Metrics"
    PROCESS_LIST = "Processes"
    NETWORK = "Network"


@dataclass(slots=True, frozen=True)
class SingleProcess:
    """Drill-down page for one process; not a tab of its own."""

    pid: int


CurrentPage = Page | SingleProcess

MAIN_TABS: tuple[Page, ...] = tuple(Page)


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    NAME = "name"


def _wrap(index: int, size: int) -> int:
    return index % size


def digit_tab_index(key: str, size: int) -> int | None:
    """Map a digit key to a tab index (``"1"`` is the first tab), clamped to range."""
    if len(key) != 1 or not key.isdigit():
        return None
    return min(max(int(key) - 1, 0), size - 1)


@dataclass
class NavigationState:
    """
    Current page, tab, process-table cursor and drill-down target.

    ``handle_key`` is total: unknown keys are ignored and indices clamp.
    """

    page: CurrentPage = Page.OVERVIEW
    tab_index: int = 0
    cursor: int = 0
    selected_pid: int | None = None
    sort_key: SortKey = SortKey.CPU
    stopped: bool = False

    def select_tab(self, index: int) -> None:
        """Jump to a tab by index, clamped to the valid range."""
        self.tab_index = min(max(index, 0), len(MAIN_TABS) - 1)
        self.page = MAIN_TABS[self.tab_index]

    def next_tab(self) -> None:
        self.select_tab(_wrap(self.tab_index + 1, len(MAIN_TABS)))

    def previous_tab(self) -> None:
        self.select_tab(_wrap(self.tab_index - 1, len(MAIN_TABS)))

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self.sort_key = keys[(keys.index(self.sort_key) + 1) % len(keys)]
        self.cursor = 0
        return self.sort_key

    def sync(self, process_pids: Sequence[int]) -> None:
        """Keep the cursor and selected PID consistent with the current table rows."""
        if not process_pids:
            self.cursor = 0
            self.selected_pid = None
            return
        self.cursor = min(max(self.cursor, 0), len(process_pids) - 1)
        self.selected_pid = process_pids[self.cursor]

    def handle_key(self, key: str, process_pids: Sequence[int] = ()) -> bool:
        """
        Apply one key press.

        Args:
            key: Key name, e.g. ``"tab"``, ``"2"``, ``"enter"``.
            process_pids: PIDs of the process table rows, in display order.

        Returns:
            True if the state changed.
        """
        before = self._state()

        if key == QUIT_KEY:
            self.stopped = True
        elif key == NEXT_TAB_KEY:
            self.next_tab()
        elif key == PREVIOUS_TAB_KEY:
            self.previous_tab()
        elif (index := digit_tab_index(key, len(MAIN_TABS))) is not None:
            self.select_tab(index)
        elif self.page is Page.PROCESS_LIST:
            self._handle_process_list_key(key, process_pids)
        elif isinstance(self.page, SingleProcess) and key in ("escape", "backspace"):
            self.page = Page.PROCESS_LIST

        return self._state() != before

    def _handle_process_list_key(self, key: str, process_pids: Sequence[int]) -> None:
        if key in ("down", "j"):
            self.cursor += 1
            self.sync(process_pids)
        elif key in ("up", "k"):
            self.cursor -= 1
            self.sync(process_pids)
        elif key == "s":
            self.cycle_sort()
        elif key == "enter":
            self.sync(process_pids)
            if self.selected_pid is not None:
                self.page = SingleProcess(self.selected_pid)

    def _state(self) -> tuple:
        return (self.page, self.tab_index, self.cursor, self.selected_pid, self.sort_key, self.stopped)


class Web3Page(Enum):
    """Tabs of the web3 tool, in tab order."""

    ADDRESS_VALIDATION = "Address Validation"
    PORTFOLIO = "Portfolio"


WEB3_TABS: tuple[Web3Page, ...] = tuple(Web3Page)


class InputMode(Enum):
    NORMAL = "normal"
    EDITING = "editing"


@dataclass
class InputField:
    """Single-line text input with a cursor and a history of submitted values."""

    text: str = ""
    cursor: int = 0
    mode: InputMode = InputMode.NORMAL
    messages: list[str] = field(default_factory=list)

    @property
    def editing(self) -> bool:
        return self.mode is InputMode.EDITING

    def start_editing(self) -> None:
        self.mode = InputMode.EDITING

    def handle_key(self, key: str, character: str | None = None) -> str | None:
        """
        Apply a key while editing.

        Returns:
            The submitted text when ``enter`` was pressed, else None.
        """
        if key == "enter":
            submitted = self.text.strip()
            self.text = ""
            self.cursor = 0
            if submitted:
                self.messages.append(submitted)
            return submitted or None
        if key == "escape":
            self.mode = InputMode.NORMAL
        elif key == "backspace":
            if self.cursor > 0:
                self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
                self.cursor -= 1
        elif key == "left":
            self.cursor = max(self.cursor - 1, 0)
        elif key == "right":
            self.cursor = min(self.cursor + 1, len(self.text))
        elif character is not None and len(character) == 1 and character.isprintable():
            self.text = self.text[: self.cursor] + character + self.text[self.cursor :]
            self.cursor += 1
        return None


@dataclass(slots=True, frozen=True)
class Submission:
    """Text entered on a web3 page, to be acted on by the engine."""

    page: Web3Page
    text: str


@dataclass
class Web3NavigationState:
    """Tabs and input fields of the web3 tool."""

    page: Web3Page = Web3Page.ADDRESS_VALIDATION
    tab_index: int = 0
    stopped: bool = False
    inputs: dict[Web3Page, InputField] = field(
        default_factory=lambda: {page: InputField() for page in WEB3_TABS}
    )

    @property
    def input_field(self) -> InputField:
        """Input field of the current page."""
        return self.inputs[self.page]

    def select_tab(self, index: int) -> None:
        self.tab_index = min(max(index, 0), len(WEB3_TABS) - 1)
        self.page = WEB3_TABS[self.tab_index]

    def handle_key(self, key: str, character: str | None = None) -> Submission | None:
        """Apply one key press; returns a Submission when text was entered."""
        field_ = self.input_field
        if field_.editing:
            text = field_.handle_key(key, character)
            return Submission(self.page, text) if text is not None else None

        if key == QUIT_KEY:
            self.stopped = True
        elif key == NEXT_TAB_KEY:
            self.select_tab(_wrap(self.tab_index + 1, len(WEB3_TABS)))
        elif key == PREVIOUS_TAB_KEY:
            self.select_tab(_wrap(self.tab_index - 1, len(WEB3_TABS)))
        elif (index := digit_tab_index(key, len(WEB3_TABS))) is not None:
            self.select_tab(index)
        elif key in ("e", "enter"):
            field_.start_editing()
        return None


class Feature(Enum):
    """Tools offered by the interactive launcher, in menu order."""

    CORE = "Core"
    WEB3 = "Web3"


FEATURES: tuple[Feature, ...] = tuple(Feature)


@dataclass
class FeatureMenu:
    """
    Feature selection menu of ``stomata --interactive``.

    ``enter`` (or a digit) sets ``chosen``; ``q``/``escape`` stops. A menu
    shown again after a feature exits starts with nothing chosen.
    """

    selected: int = 0
    chosen: Feature | None = None
    stopped: bool = False

    def handle_key(self, key: str) -> bool:
        """Apply one key press; returns True if the state changed."""
        before = (self.selected, self.chosen, self.stopped)

        if key in (QUIT_KEY, "escape"):
            self.stopped = True
        elif key in ("down", "j", NEXT_TAB_KEY):
            self.selected = min(self.selected + 1, len(FEATURES) - 1)
        elif key in ("up", "k", PREVIOUS_TAB_KEY):
            self.selected = max(self.selected - 1, 0)
        elif (index := digit_tab_index(key, len(FEATURES))) is not None:
            self.selected = index
            self.chosen = FEATURES[index]
        elif key == "enter":
            self.chosen = FEATURES[self.selected]

        return (self.selected, self.chosen, self.stopped) != before
