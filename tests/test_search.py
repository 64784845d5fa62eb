"""Tests for the stateful search engine."""

import pytest

from thicket.core.model import Note
from thicket.search.engine import SearchEngine, split_query
from thicket.search.fuzzy import FuzzyIndex


@pytest.fixture
def notes():
    """A small collection with overlapping tags."""
    return [
        Note(id="n1", title="Project plan", content="deadline friday", tags=["work", "urgent"]),
        Note(id="n2", title="Grocery list", content="milk eggs", tags=["home"]),
        Note(id="n3", title="Work retro", content="went well", tags=["work"]),
    ]


@pytest.fixture
def engine(notes):
    return SearchEngine(notes)


def ids(notes):
    return [n.id for n in notes]


def test_nothing_active_returns_full_collection(engine):
    """Test empty query and no tags returns every note in collection order."""
    assert ids(engine.results()) == ["n1", "n2", "n3"]
    assert engine.result_count == 3
    assert not engine.has_active_filters


def test_free_text_query(engine):
    """Test a fuzzy query narrows the results."""
    engine.set_query("milk")

    assert ids(engine.results()) == ["n2"]
    assert engine.has_active_filters


def test_selected_tags_are_and_combined(engine):
    """Test every selected tag must be present."""
    engine.select_tag("work")
    assert ids(engine.results()) == ["n1", "n3"]

    engine.select_tag("urgent")
    assert ids(engine.results()) == ["n1"]


def test_select_tag_ignores_case_duplicates(engine):
    """Test selecting a tag twice in different case keeps one entry."""
    engine.select_tag("work")
    engine.select_tag("WORK")

    assert engine.selected_tags == ["work"]
    assert ids(engine.results()) == ["n1", "n3"]

    engine.remove_tag("Work")
    assert engine.selected_tags == []


def test_tag_filter_applies_to_fuzzy_results(engine):
    """Test tags filter fuzzy hits and can empty the result."""
    engine.set_query("milk")
    engine.select_tag("work")

    assert engine.results() == []
    assert not engine.has_results


def test_hash_shorthand_in_query(engine):
    """Test #tag in the query acts like a selected tag."""
    engine.set_query("#work")
    assert ids(engine.results()) == ["n1", "n3"]

    engine.set_query("#work #urgent")
    assert ids(engine.results()) == ["n1"]
    assert engine.selected_tags == []


def test_split_query():
    """Test shorthand tags are separated from free text."""
    assert split_query("graph #work ideas") == ("graph ideas", ["work"])
    assert split_query("C# tips") == ("C# tips", [])
    assert split_query("") == ("", [])


def test_clear_all_keeps_history(engine):
    """Test clear_all resets query and tags but not history."""
    engine.set_query("milk")
    engine.add_to_history("milk")
    engine.select_tag("home")

    engine.clear_all()

    assert engine.query == ""
    assert engine.selected_tags == []
    assert engine.history == ["milk"]
    assert ids(engine.results()) == ["n1", "n2", "n3"]


def test_history_bounded_and_deduplicated(engine):
    """Test history keeps the 10 most recent distinct queries, newest first."""
    for i in range(12):
        engine.add_to_history(f"q{i}")
    assert engine.history == [f"q{i}" for i in range(11, 1, -1)]

    engine.add_to_history("q5")
    assert engine.history[0] == "q5"
    assert engine.history.count("q5") == 1
    assert len(engine.history) == 10


def test_blank_queries_not_recorded(engine):
    """Test blank input never enters history."""
    engine.add_to_history("   ")

    assert engine.history == []


def test_select_from_history(engine):
    """Test picking a past query sets it and moves it to the front."""
    engine.add_to_history("milk")
    engine.add_to_history("plan")

    engine.select_from_history("milk")

    assert engine.query == "milk"
    assert engine.history == ["milk", "plan"]


def test_custom_history_size():
    """Test max_history is configurable and validated."""
    engine = SearchEngine(max_history=2)
    for q in ("a", "b", "c"):
        engine.add_to_history(q)

    assert engine.history == ["c", "b"]
    with pytest.raises(ValueError):
        SearchEngine(max_history=0)


def test_suggestions(engine):
    """Test title and tag suggestions."""
    assert engine.get_search_suggestions("gro") == ["Grocery list"]
    assert engine.get_search_suggestions("wor") == ["Work retro", "#work"]
    assert engine.get_search_suggestions("#ur") == ["#urgent"]
    assert engine.get_search_suggestions("  ") == []


def test_popular_tags_over_whole_collection(engine):
    """Test popular tags ignore the active filters."""
    engine.set_query("milk")

    assert engine.get_popular_tags() == ["work", "urgent", "home"]
    assert engine.get_popular_tags(limit=1) == ["work"]


def test_set_notes_rebuilds_index(engine):
    """Test results follow a replaced collection."""
    engine.set_query("milk")
    engine.set_notes([Note(id="n9", title="Milkshake")])

    assert ids(engine.results()) == ["n9"]
    assert engine.all_tags() == []


def test_threshold_change_rebuilds_index(engine):
    """Test a stricter threshold drops approximate hits."""
    engine.set_query("milx")
    assert ids(engine.results()) == ["n2"]

    engine.set_threshold(0.0)
    assert engine.results() == []


def test_empty_engine():
    """Test an engine with no notes."""
    engine = SearchEngine()

    assert engine.is_empty
    assert engine.results() == []


def test_results_computed_once_per_query(engine, monkeypatch):
    """Test repeated reads reuse the last result until the query or notes change."""
    calls = []
    original = FuzzyIndex.search

    def counting(self, query):
        calls.append(query)
        return original(self, query)

    monkeypatch.setattr(FuzzyIndex, "search", counting)
    engine.set_query("milk")

    assert ids(engine.results()) == ["n2"]
    assert engine.result_count == 1
    assert engine.has_results
    assert len(calls) == 1

    engine.results().clear()
    assert ids(engine.results()) == ["n2"]

    engine.set_query("work")
    engine.results()
    assert len(calls) == 2

    engine.set_notes([Note(id="n9", title="Work log")])
    assert ids(engine.results()) == ["n9"]
    assert len(calls) == 3
