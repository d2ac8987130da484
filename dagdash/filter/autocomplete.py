"""Typed text plus the ranked candidates that still match it."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass
class AutocompleteState:
    """Autocomplete for a single filter input.

    Candidates are a case-insensitive prefix match of ``typed`` against the
    vocabulary last handed to :meth:`update_candidates`. They are recomputed
    from scratch on every edit, and ``selected_index`` is reset to the first
    candidate each time.
    """

    typed: str = ""
    candidates: list[str] = field(default_factory=list)
    selected_index: int = 0
    vocabulary: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def with_vocabulary(cls, vocabulary: Iterable[str], typed: str = "") -> AutocompleteState:
        state = cls(typed=typed)
        state.update_candidates(vocabulary)
        return state

    def update_candidates(self, vocabulary: Iterable[str] | None = None) -> None:
        """Recompute candidates, optionally against a new vocabulary."""
        if vocabulary is not None:
            # dict.fromkeys keeps first-seen order while dropping duplicates
            self.vocabulary = list(dict.fromkeys(vocabulary))
        needle = self.typed.lower()
        self.candidates = [v for v in self.vocabulary if v.lower().startswith(needle)]
        self.selected_index = 0

    def replace_vocabulary(self, vocabulary: Iterable[str]) -> None:
        """Recompute against fresh data, keeping the highlight if it survives."""
        selected = self.selected()
        self.update_candidates(vocabulary)
        if selected in self.candidates:
            self.selected_index = self.candidates.index(selected)

    def push_char(self, ch: str) -> None:
        self.typed += ch
        self.update_candidates()

    def pop_char(self) -> bool:
        """Remove the last typed character. Returns False if nothing was typed."""
        if not self.typed:
            return False
        self.typed = self.typed[:-1]
        self.update_candidates()
        return True

    def next_candidate(self) -> None:
        if self.candidates:
            self.selected_index = (self.selected_index + 1) % len(self.candidates)

    def prev_candidate(self) -> None:
        if self.candidates:
            self.selected_index = (self.selected_index - 1) % len(self.candidates)

    def selected(self) -> str | None:
        if not self.candidates:
            return None
        return self.candidates[self.selected_index]

    def ghost_suffix(self) -> str:
        """The part of the highlighted candidate not yet typed."""
        candidate = self.selected()
        if not self.typed or candidate is None:
            return ""
        if len(candidate) <= len(self.typed):
            return ""
        return candidate[len(self.typed):]
