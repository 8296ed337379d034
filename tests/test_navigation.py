"""Tests for the navigation state machines."""

import pytest

from stomata.navigation import (
    FEATURES,
    MAIN_TABS,
    Feature,
    FeatureMenu,
    InputField,
    InputMode,
    NavigationState,
    Page,
    SingleProcess,
    SortKey,
    Submission,
    Web3NavigationState,
    Web3Page,
    digit_tab_index,
)

PIDS = [100, 200, 300]


class TestTabs:
    """Tests for tab switching."""

    def test_initial_state(self):
        """Test navigation starts on the overview tab."""
        nav = NavigationState()
        assert nav.page is Page.OVERVIEW
        assert nav.tab_index == 0
        assert not nav.stopped

    def test_tab_wraps_forward(self):
        """Test tab from the last tab returns to the first."""
        nav = NavigationState()
        for _ in range(len(MAIN_TABS)):
            nav.handle_key("tab")
        assert nav.tab_index == 0
        assert nav.page is Page.OVERVIEW

    def test_shift_tab_wraps_backward(self):
        """Test shift+tab from the first tab goes to the last."""
        nav = NavigationState()
        assert nav.handle_key("shift+tab")
        assert nav.tab_index == len(MAIN_TABS) - 1
        assert nav.page is Page.NETWORK

    def test_digit_selects_tab(self):
        """Test "2" selects the second tab."""
        nav = NavigationState()
        assert nav.handle_key("2")
        assert nav.tab_index == 1
        assert nav.page is Page.METRICS

    @pytest.mark.parametrize(("key", "expected"), [("1", 0), ("3", 2), ("0", 0), ("9", 3)])
    def test_digit_is_clamped(self, key, expected):
        """Test digits beyond the tab count clamp to the ends."""
        assert digit_tab_index(key, len(MAIN_TABS)) == expected

    def test_non_digit_is_not_a_tab(self):
        """Test ordinary keys are not tab indices."""
        assert digit_tab_index("x", 4) is None
        assert digit_tab_index("f1", 4) is None

    def test_quit_stops(self):
        """Test q sets the stop flag."""
        nav = NavigationState()
        assert nav.handle_key("q")
        assert nav.stopped

    def test_unknown_key_is_ignored(self):
        """Test keys without a meaning leave the state unchanged."""
        nav = NavigationState()
        assert not nav.handle_key("z")
        assert not nav.handle_key("enter", PIDS)
        assert nav == NavigationState()


class TestProcessList:
    """Tests for process list keys and drill-down."""

    def _on_process_list(self) -> NavigationState:
        nav = NavigationState()
        nav.handle_key("3")
        nav.sync(PIDS)
        return nav

    def test_cursor_moves_and_clamps(self):
        """Test the cursor follows down/up and stays inside the table."""
        nav = self._on_process_list()
        nav.handle_key("down", PIDS)
        nav.handle_key("j", PIDS)
        nav.handle_key("down", PIDS)
        assert nav.cursor == 2
        assert nav.selected_pid == 300
        nav.handle_key("k", PIDS)
        assert nav.selected_pid == 200
        for _ in range(5):
            nav.handle_key("up", PIDS)
        assert nav.cursor == 0

    def test_enter_opens_single_process(self):
        """Test enter drills down into the selected process."""
        nav = self._on_process_list()
        nav.handle_key("down", PIDS)
        assert nav.handle_key("enter", PIDS)
        assert nav.page == SingleProcess(200)

    def test_enter_without_processes(self):
        """Test enter on an empty table does nothing."""
        nav = NavigationState()
        nav.handle_key("3")
        assert not nav.handle_key("enter", [])
        assert nav.page is Page.PROCESS_LIST

    @pytest.mark.parametrize("key", ["escape", "backspace"])
    def test_back_returns_to_process_list(self, key):
        """Test escape and backspace leave the drill-down page."""
        nav = self._on_process_list()
        nav.handle_key("enter", PIDS)
        assert nav.handle_key(key)
        assert nav.page is Page.PROCESS_LIST

    def test_tab_leaves_single_process(self):
        """Test tab switching works from the drill-down page."""
        nav = self._on_process_list()
        nav.handle_key("enter", PIDS)
        nav.handle_key("1")
        assert nav.page is Page.OVERVIEW

    def test_sort_key_cycles(self):
        """Test s cycles through every sort key."""
        nav = self._on_process_list()
        seen = []
        for _ in range(len(SortKey)):
            nav.handle_key("s", PIDS)
            seen.append(nav.sort_key)
        assert seen == [SortKey.MEM, SortKey.PID, SortKey.NAME, SortKey.CPU]

    def test_sync_clears_selection_when_empty(self):
        """Test an empty table resets the cursor and selection."""
        nav = self._on_process_list()
        nav.sync([])
        assert nav.cursor == 0
        assert nav.selected_pid is None


class TestInputField:
    """Tests for the single-line text input."""

    def test_typing_and_cursor(self):
        """Test characters are inserted at the cursor."""
        field = InputField(mode=InputMode.EDITING)
        for char in "0xb":
            field.handle_key(char, char)
        field.handle_key("left")
        field.handle_key("a", "a")
        assert field.text == "0xab"
        assert field.cursor == 3

    def test_backspace(self):
        """Test backspace deletes the character before the cursor."""
        field = InputField(text="abc", cursor=3, mode=InputMode.EDITING)
        field.handle_key("backspace")
        assert field.text == "ab"
        field.cursor = 0
        field.handle_key("backspace")
        assert field.text == "ab"

    def test_enter_submits_and_clears(self):
        """Test enter returns the stripped text and empties the field."""
        field = InputField(text="  0xabc ", cursor=8, mode=InputMode.EDITING)
        assert field.handle_key("enter") == "0xabc"
        assert field.text == ""
        assert field.messages == ["0xabc"]

    def test_enter_on_empty_field(self):
        """Test submitting nothing returns None."""
        field = InputField(mode=InputMode.EDITING)
        assert field.handle_key("enter") is None

    def test_escape_stops_editing(self):
        """Test escape leaves editing mode."""
        field = InputField(mode=InputMode.EDITING)
        field.handle_key("escape")
        assert not field.editing


class TestWeb3Navigation:
    """Tests for the web3 tool's navigation."""

    def test_tabs_wrap(self):
        """Test tab and shift+tab wrap over both pages."""
        nav = Web3NavigationState()
        nav.handle_key("tab")
        assert nav.page is Web3Page.PORTFOLIO
        nav.handle_key("tab")
        assert nav.page is Web3Page.ADDRESS_VALIDATION
        nav.handle_key("shift+tab")
        assert nav.page is Web3Page.PORTFOLIO

    def test_edit_and_submit(self):
        """Test e starts editing and enter yields a submission for the page."""
        nav = Web3NavigationState()
        nav.handle_key("e")
        for char in "0x1":
            nav.handle_key(char, char)
        assert nav.handle_key("enter") == Submission(Web3Page.ADDRESS_VALIDATION, "0x1")

    def test_keys_go_to_field_while_editing(self):
        """Test q and digits are typed, not interpreted, while editing."""
        nav = Web3NavigationState()
        nav.handle_key("enter")
        nav.handle_key("q", "q")
        nav.handle_key("2", "2")
        assert not nav.stopped
        assert nav.page is Web3Page.ADDRESS_VALIDATION
        assert nav.input_field.text == "q2"

    def test_each_page_has_its_own_field(self):
        """Test text typed on one page does not appear on the other."""
        nav = Web3NavigationState()
        nav.handle_key("e")
        nav.handle_key("a", "a")
        nav.handle_key("escape")
        nav.handle_key("2")
        assert nav.input_field.text == ""
        assert not nav.input_field.editing

    def test_quit(self):
        """Test q stops the tool outside editing mode."""
        nav = Web3NavigationState()
        nav.handle_key("q")
        assert nav.stopped


class TestFeatureMenu:
    """Tests for the launcher's feature selection menu."""

    def test_starts_on_first_feature(self):
        """Test a new menu selects the first feature and chooses nothing."""
        menu = FeatureMenu()
        assert FEATURES[menu.selected] is Feature.CORE
        assert menu.chosen is None
        assert not menu.stopped

    def test_moves_clamp_at_both_ends(self):
        """Test up/down move the selection without wrapping."""
        menu = FeatureMenu()
        assert not menu.handle_key("up")
        assert menu.handle_key("down")
        assert menu.selected == 1
        assert not menu.handle_key("j")
        assert menu.handle_key("k")
        assert menu.selected == 0

    def test_enter_chooses_selected(self):
        """Test enter chooses the highlighted feature."""
        menu = FeatureMenu()
        menu.handle_key("down")
        assert menu.handle_key("enter")
        assert menu.chosen is Feature.WEB3

    @pytest.mark.parametrize(("key", "feature"), [("1", Feature.CORE), ("2", Feature.WEB3), ("9", Feature.WEB3)])
    def test_digit_chooses_directly(self, key, feature):
        """Test a digit selects and chooses a feature, clamped to the menu."""
        menu = FeatureMenu()
        menu.handle_key(key)
        assert menu.chosen is feature

    @pytest.mark.parametrize("key", ["q", "escape"])
    def test_quit(self, key):
        """Test q and escape stop the menu."""
        menu = FeatureMenu()
        assert menu.handle_key(key)
        assert menu.stopped
        assert menu.chosen is None

    def test_unknown_key_is_ignored(self):
        """Test unrelated keys change nothing."""
        assert not FeatureMenu().handle_key("x")
