"""
Keyboard-driven quick-search overlay modeled as an explicit state machine.

The palette is either CLOSED or OPEN. Ctrl/Cmd+K toggles it; every other event
is ignored while it is closed. While open it tracks the query, the results of
the latest search (fetched from GET /search) and the selected result index.

Callers feed events in and act on the returned Transition: a non-empty
`navigate_to` means the user picked a result, and `search_query` means the
caller should run a search and report back with results_loaded().
"""

from dataclasses import dataclass, field
from typing import Any, Literal

PaletteState = Literal["closed", "open"]


@dataclass
class PaletteResult:
    """One search hit shown in the palette."""

    id: str
    title: str
    category: str | None = None

    @classmethod
    def from_search_result(cls, result: dict[str, Any]) -> "PaletteResult":
        """Build from one camelCase item of the search response's `results`."""
        category = result.get("category")
        return cls(
            id=str(result["id"]),
            title=result["title"],
            category=category.get("name") if category else None,
        )


@dataclass
class Transition:
    """Side effects requested by an event."""

    navigate_to: str | None = None
    search_query: str | None = None


@dataclass
class CommandPalette:
    """Command palette state: open flag, query, results and selected index."""

    state: PaletteState = "closed"
    query: str = ""
    results: list[PaletteResult] = field(default_factory=list)
    selected: int = 0

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @property
    def selected_result(self) -> PaletteResult | None:
        if 0 <= self.selected < len(self.results):
            return self.results[self.selected]
        return None

    def _close(self) -> None:
        self.state = "closed"
        self.query = ""
        self.results = []
        self.selected = 0

    def toggle(self) -> Transition:
        """Ctrl/Cmd+K: open when closed, close when open (query is kept on close)."""
        self.state = "closed" if self.is_open else "open"
        return Transition()

    def escape(self) -> Transition:
        """Close and clear the query and results."""
        if self.is_open:
            self._close()
        return Transition()

    def move_down(self) -> Transition:
        """Select the next result, stopping at the last one."""
        if self.is_open and self.results:
            self.selected = min(self.selected + 1, len(self.results) - 1)
        return Transition()

    def move_up(self) -> Transition:
        """Select the previous result, stopping at the first one."""
        if self.is_open:
            self.selected = max(self.selected - 1, 0)
        return Transition()

    def enter(self) -> Transition:
        """Open the selected prompt: close, clear, and navigate to /prompts/{id}."""
        if not self.is_open:
            return Transition()
        result = self.selected_result
        if result is None:
            return Transition()
        self._close()
        return Transition(navigate_to=f"/prompts/{result.id}")

    def set_query(self, query: str) -> Transition:
        """
        Update the query text.

        A blank query clears the results immediately; otherwise the caller is
        asked to search for it.
        """
        if not self.is_open:
            return Transition()
        self.query = query
        if not query.strip():
            self.results = []
            self.selected = 0
            return Transition()
        return Transition(search_query=query)

    def results_loaded(self, query: str, results: list[PaletteResult]) -> Transition:
        """
        Show results of a finished search and reset the selection to the first one.

        Results for a query that is no longer current are dropped.
        """
        if self.is_open and query == self.query and query.strip():
            self.results = list(results)
            self.selected = 0
        return Transition()

    def handle_key(self, key: str, ctrl_or_meta: bool = False) -> Transition:
        """Dispatch a keydown event the way the overlay's key handler does."""
        if ctrl_or_meta and key.lower() == "k":
            return self.toggle()
        handlers = {
            "Escape": self.escape,
            "ArrowDown": self.move_down,
            "ArrowUp": self.move_up,
            "Enter": self.enter,
        }
        handler = handlers.get(key)
        if handler is None:
            return Transition()
        return handler()
