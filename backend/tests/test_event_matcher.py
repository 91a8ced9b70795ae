"""Tests for matching ancestry events to original events."""

import logging
import os
import pytest
import sys

from pydantic import ValidationError

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gedcom_utils import build_record_index, find_record_by_id, parse_gedcom_content
from matchapid.events import (
    EventMatch,
    MatchOutcome,
    event_type,
    events_match,
    is_unique,
    match_event,
    places_match,
)


def events_of(content: str, record_id: str = "@I1@") -> list:
    """Parse content and return the children of one record."""
    parser = parse_gedcom_content(content)
    return find_record_by_id(parser, record_id).get_child_elements()


ANCESTRY = """0 @I1@ INDI
1 NAME John /Smith/
1 BIRT
2 DATE 1 JAN 1900
2 PLAC Boston, MA
2 SOUR @S1@
3 _APID 1,7602::100
1 EVEN
2 TYPE Military
2 DATE 1918
0 @I2@ INDI
1 NAME Jane /Doe/
1 DEAT
2 DATE 1950
0 TRLR
"""


@pytest.fixture
def ancestry():
    return parse_gedcom_content(ANCESTRY)


@pytest.fixture
def anc_birth(ancestry):
    return find_record_by_id(ancestry, "@I1@").get_child_elements()[1]


# ============================================================================
# Place comparison
# ============================================================================

class TestPlacesMatch:
    """Tests for lenient place comparison."""

    def test_identical_ignoring_case(self):
        assert places_match("Boston, MA", "boston, ma")

    def test_truncated_place(self):
        assert places_match("Boston", "Boston, Suffolk, Massachusetts")
        assert places_match("Boston, Suffolk, Massachusetts", "Boston, MA")

    def test_different_places(self):
        assert not places_match("Boston, MA", "Salem, MA")

    def test_empty_place_matches(self):
        assert places_match("", "Boston, MA")
        assert places_match("Boston, MA", "")


# ============================================================================
# Uniqueness
# ============================================================================

class TestIsUnique:
    """Tests for the uniqueness shortcut."""

    def test_single_tag(self):
        events = events_of("0 @I1@ INDI\n1 BIRT\n1 DEAT\n0 TRLR\n")
        record = events[0].get_parent_element()
        assert is_unique("BIRT", "", record)

    def test_repeated_tag(self):
        events = events_of("0 @I1@ INDI\n1 RESI\n2 DATE 1900\n1 RESI\n2 DATE 1910\n0 TRLR\n")
        record = events[0].get_parent_element()
        assert not is_unique("RESI", "", record)

    def test_generic_event_counts_by_type(self):
        events = events_of(
            "0 @I1@ INDI\n1 EVEN\n2 TYPE Military\n1 EVEN\n2 TYPE Census\n1 EVEN\n2 TYPE census\n0 TRLR\n"
        )
        record = events[0].get_parent_element()
        assert is_unique("EVEN", "military", record)
        assert not is_unique("EVEN", "census", record)

    def test_event_type(self):
        events = events_of("0 @I1@ INDI\n1 EVEN\n2 TYPE Military\n1 BIRT\n2 TYPE odd\n0 TRLR\n")
        assert event_type(events[0]) == "military"
        assert event_type(events[1]) == ""


# ============================================================================
# Event equivalence
# ============================================================================

class TestEventsMatch:
    """Tests for deciding whether two events are the same occurrence."""

    def test_different_tags(self, anc_birth):
        orig = events_of("0 @I1@ INDI\n1 DEAT\n2 DATE 1 JAN 1900\n0 TRLR\n")[0]
        assert not events_match(anc_birth, orig)

    def test_unique_event_matches_without_comparing_fields(self, anc_birth):
        orig = events_of("0 @I1@ INDI\n1 BIRT\n2 DATE 1899\n2 PLAC Chicago\n0 TRLR\n")[0]
        assert events_match(anc_birth, orig)

    def test_same_date_and_place_among_repeats(self, anc_birth):
        """Scenario B: two BIRT events, only one with the matching date."""
        events = events_of(
            "0 @I1@ INDI\n"
            "1 BIRT\n2 DATE 1 JAN 1900\n2 PLAC Boston, Suffolk, Massachusetts\n"
            "1 BIRT\n2 DATE 5 MAY 1901\n2 PLAC Boston, MA\n"
            "0 TRLR\n"
        )
        assert events_match(anc_birth, events[0])
        assert not events_match(anc_birth, events[1])

    def test_date_missing_on_one_side(self, anc_birth):
        events = events_of("0 @I1@ INDI\n1 BIRT\n2 PLAC Boston, MA\n1 BIRT\n2 DATE 1901\n0 TRLR\n")
        assert not events_match(anc_birth, events[0])

    def test_no_dates_falls_back_to_place(self):
        anc = events_of("0 @I1@ INDI\n1 RESI\n2 PLAC Salem\n0 TRLR\n")[0]
        events = events_of("0 @I1@ INDI\n1 RESI\n2 PLAC Salem, Essex\n1 RESI\n2 PLAC Boston\n0 TRLR\n")
        assert events_match(anc, events[0])
        assert not events_match(anc, events[1])

    def test_name_requires_exact_value(self):
        anc = events_of("0 @I1@ INDI\n1 NAME John /Smith/\n0 TRLR\n")[0]
        names = events_of("0 @I1@ INDI\n1 NAME John /Smith/\n1 NAME Johnny /Smith/\n0 TRLR\n")
        assert events_match(anc, names[0])
        assert not events_match(anc, names[1])

    def test_description_requires_exact_value(self):
        anc = events_of("0 @I1@ INDI\n1 DSCR Tall\n0 TRLR\n")[0]
        dscrs = events_of("0 @I1@ INDI\n1 DSCR Tall\n1 DSCR Short\n0 TRLR\n")
        assert events_match(anc, dscrs[0])
        assert not events_match(anc, dscrs[1])

    def test_generic_event_type_must_match(self, ancestry):
        anc = find_record_by_id(ancestry, "@I1@").get_child_elements()[2]
        events = events_of("0 @I1@ INDI\n1 EVEN\n2 TYPE Census\n1 EVEN\n2 TYPE MILITARY\n0 TRLR\n")
        assert not events_match(anc, events[0])
        assert events_match(anc, events[1])


# ============================================================================
# Full lookup
# ============================================================================

class TestMatchEvent:
    """Tests for locating the original event for an ancestry event."""

    def test_unique_match(self, anc_birth):
        """Scenario A: identical birth date and place."""
        original = parse_gedcom_content(
            "0 @I1@ INDI\n1 NAME John /Smith/\n1 BIRT\n2 DATE 1 JAN 1900\n2 PLAC Boston, MA\n0 TRLR\n"
        )
        match = match_event(anc_birth, build_record_index(original))
        assert match.outcome is MatchOutcome.UNIQUE
        assert match.event is find_record_by_id(original, "@I1@").get_child_elements()[1]

    def test_unique_match_via_refinement(self, anc_birth):
        """Scenario B: uniqueness shortcut does not apply, date decides."""
        original = parse_gedcom_content(
            "0 @I1@ INDI\n"
            "1 BIRT\n2 DATE 1 JAN 1900\n2 PLAC Boston, MA\n"
            "1 BIRT\n2 PLAC Boston, MA\n"
            "0 TRLR\n"
        )
        match = match_event(anc_birth, build_record_index(original))
        assert match.outcome is MatchOutcome.UNIQUE
        assert match.event.get_child_elements()[0].get_value() == "1 JAN 1900"

    def test_no_record(self, ancestry, caplog):
        caplog.set_level(logging.WARNING)
        original = parse_gedcom_content("0 @I1@ INDI\n1 NAME John /Smith/\n0 TRLR\n")
        anc_death = find_record_by_id(ancestry, "@I2@").get_child_elements()[1]

        match = match_event(anc_death, build_record_index(original))
        assert match.outcome is MatchOutcome.NO_RECORD
        assert match.event is None
        assert "Could not match INDI @I2@ Jane /Doe/" in caplog.text

    def test_no_event(self, anc_birth, caplog):
        caplog.set_level(logging.WARNING)
        original = parse_gedcom_content("0 @I1@ INDI\n1 DEAT\n2 DATE 1950\n0 TRLR\n")
        match = match_event(anc_birth, build_record_index(original))
        assert match.outcome is MatchOutcome.NO_EVENT
        assert "Could not match INDI @I1@ John /Smith/ | BIRT date: 1 JAN 1900" in caplog.text

    def test_ambiguous(self, anc_birth, caplog):
        caplog.set_level(logging.WARNING)
        original = parse_gedcom_content(
            "0 @I1@ INDI\n"
            "1 BIRT\n2 DATE 1 JAN 1900\n2 PLAC Boston\n"
            "1 BIRT\n2 DATE 1 JAN 1900\n2 PLAC Boston, Suffolk\n"
            "0 TRLR\n"
        )
        match = match_event(anc_birth, build_record_index(original))
        assert match.outcome is MatchOutcome.AMBIGUOUS
        assert len(match.candidates) == 2
        assert match.event is None
        assert "Multiple events matched" in caplog.text

    def test_candidates_must_be_elements(self):
        with pytest.raises(ValidationError):
            EventMatch(outcome=MatchOutcome.AMBIGUOUS, candidates=["BIRT", "BIRT"])

    def test_family_events(self):
        ancestry = parse_gedcom_content("0 @F1@ FAM\n1 MARR\n2 DATE 1925\n0 TRLR\n")
        original = parse_gedcom_content("0 @F1@ FAM\n1 HUSB @I1@\n1 MARR\n2 DATE 1925\n0 TRLR\n")
        anc_marr = find_record_by_id(ancestry, "@F1@").get_child_elements()[0]
        match = match_event(anc_marr, build_record_index(original))
        assert match.outcome is MatchOutcome.UNIQUE
        assert match.event.get_tag() == "MARR"
