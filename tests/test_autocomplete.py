"""Tests for dagdash.filter.autocomplete."""

from dagdash.filter import AutocompleteState

STATES = ["running", "success", "failed", "queued", "up_for_retry", "up_for_reschedule"]


class TestCandidates:
    """Candidate recomputation."""

    def test_empty_typed_matches_whole_vocabulary(self):
        ac = AutocompleteState.with_vocabulary(STATES)
        assert ac.candidates == STATES

    def test_prefix_match(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="up")
        assert ac.candidates == ["up_for_retry", "up_for_reschedule"]

    def test_case_insensitive(self):
        ac = AutocompleteState.with_vocabulary(["Running", "SUCCESS"], typed="ru")
        assert ac.candidates == ["Running"]
        ac.push_char("N")
        assert ac.candidates == ["Running"]

    def test_substring_is_not_a_prefix(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="cess")
        assert ac.candidates == []

    def test_candidates_are_subset_of_vocabulary(self):
        ac = AutocompleteState.with_vocabulary(STATES)
        for ch in "up_for_re":
            ac.push_char(ch)
            assert set(ac.candidates) <= set(STATES)
            assert all(c.lower().startswith(ac.typed.lower()) for c in ac.candidates)

    def test_duplicates_dropped_order_kept(self):
        ac = AutocompleteState.with_vocabulary(["b", "a", "b", "c"])
        assert ac.candidates == ["b", "a", "c"]

    def test_unknown_text_yields_empty_list(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="zzz")
        assert ac.candidates == []
        assert ac.selected() is None
        assert ac.ghost_suffix() == ""

    def test_new_vocabulary_replaces_old(self):
        ac = AutocompleteState.with_vocabulary(["alpha"], typed="a")
        ac.update_candidates(["apple", "banana"])
        assert ac.candidates == ["apple"]


class TestEditing:
    """push_char / pop_char."""

    def test_push_resets_selection(self):
        ac = AutocompleteState.with_vocabulary(STATES)
        ac.next_candidate()
        ac.next_candidate()
        ac.push_char("u")
        assert ac.selected_index == 0

    def test_pop_char(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="suc")
        assert ac.pop_char() is True
        assert ac.typed == "su"
        assert ac.candidates == ["success"]

    def test_pop_on_empty_reports_false(self):
        ac = AutocompleteState.with_vocabulary(STATES)
        assert ac.pop_char() is False
        assert ac.typed == ""


class TestCycling:
    """Tab / Shift-Tab cycling."""

    def test_next_wraps(self):
        ac = AutocompleteState.with_vocabulary(["a1", "a2", "a3"])
        seen = []
        for _ in range(4):
            seen.append(ac.selected())
            ac.next_candidate()
        assert seen == ["a1", "a2", "a3", "a1"]

    def test_prev_wraps(self):
        ac = AutocompleteState.with_vocabulary(["a1", "a2", "a3"])
        ac.prev_candidate()
        assert ac.selected() == "a3"

    def test_cycling_never_touches_typed(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="up")
        ac.next_candidate()
        ac.prev_candidate()
        ac.prev_candidate()
        assert ac.typed == "up"

    def test_index_stays_in_bounds(self):
        ac = AutocompleteState.with_vocabulary(STATES)
        for _ in range(13):
            ac.next_candidate()
            assert 0 <= ac.selected_index < len(ac.candidates)

    def test_cycling_with_no_candidates_is_noop(self):
        ac = AutocompleteState.with_vocabulary([])
        ac.next_candidate()
        ac.prev_candidate()
        assert ac.selected_index == 0


class TestGhostSuffix:
    """The untyped remainder of the highlighted candidate."""

    def test_suffix_of_highlighted(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="up")
        assert ac.ghost_suffix() == "_for_retry"
        ac.next_candidate()
        assert ac.ghost_suffix() == "_for_reschedule"

    def test_no_ghost_before_typing(self):
        ac = AutocompleteState.with_vocabulary(STATES)
        assert ac.ghost_suffix() == ""

    def test_no_ghost_on_exact_match(self):
        ac = AutocompleteState.with_vocabulary(STATES, typed="failed")
        assert ac.ghost_suffix() == ""
