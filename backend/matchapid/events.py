"""Matching of ancestry events to events in the original tree."""

import logging
from enum import Enum

from gedcom.element.element import Element
from pydantic import BaseModel, ConfigDict, Field

from gedcom_utils import describe_element, get_child_value, owning_record

logger = logging.getLogger("matchapid.events")

GENERIC_EVENT_TAG = "EVEN"


class MatchOutcome(str, Enum):
    NO_RECORD = "no_record"
    NO_EVENT = "no_event"
    AMBIGUOUS = "ambiguous"
    UNIQUE = "unique"


class EventMatch(BaseModel):
    """Result of looking up an ancestry event in the original tree."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: MatchOutcome
    candidates: list[Element] = Field(default_factory=list, description="Original events that matched.")

    @property
    def event(self) -> Element | None:
        """The matched original event, only for a unique match."""
        if self.outcome is MatchOutcome.UNIQUE:
            return self.candidates[0]
        return None


def event_type(event: Element) -> str:
    """Lower-cased TYPE of a generic EVEN record, '' for other tags."""
    if event.get_tag() != GENERIC_EVENT_TAG:
        return ""
    return get_child_value(event, "TYPE").lower()


def is_unique(tag: str, even_type: str, record: Element) -> bool:
    """True if at most one child of the record has this tag (and, for EVEN, this TYPE)."""
    count = 0
    for child in record.get_child_elements():
        if child.get_tag() != tag:
            continue
        if tag == GENERIC_EVENT_TAG and get_child_value(child, "TYPE").lower() != even_type:
            continue
        count += 1
        if count > 1:
            return False
    return True


def _first_segment(place: str) -> str:
    return place.split(",")[0]


def places_match(place_anc: str, place_orig: str) -> bool:
    """
    Case-insensitive place comparison that tolerates differing specificity.

    'Boston' matches 'Boston, Suffolk, Massachusetts' because one side contains
    the other's first comma-delimited segment.
    """
    place_anc = place_anc.lower()
    place_orig = place_orig.lower()
    return (
        place_anc == place_orig
        or _first_segment(place_orig) in place_anc
        or _first_segment(place_anc) in place_orig
    )


def events_match(event_anc: Element, event_orig: Element) -> bool:
    """Decide whether two events describe the same occurrence."""
    if event_anc is None or event_orig is None:
        return False

    tag = event_anc.get_tag()
    if tag != event_orig.get_tag():
        return False

    even_type = event_type(event_anc)
    if even_type != event_type(event_orig):
        return False

    record = event_orig.get_parent_element()
    if record is not None and is_unique(tag, even_type, record):
        return True

    if tag == "NAME" and event_anc.get_value() != event_orig.get_value():
        return False

    date_anc = get_child_value(event_anc, "DATE")
    date_orig = get_child_value(event_orig, "DATE")
    # with no dates on either side, fall through to the place
    if (date_anc or date_orig) and date_anc != date_orig:
        return False

    if not places_match(get_child_value(event_anc, "PLAC"), get_child_value(event_orig, "PLAC")):
        return False

    if tag == "DSCR" and event_anc.get_value() != event_orig.get_value():
        return False

    return True


def match_event(event_anc: Element, index: dict[str, Element]) -> EventMatch:
    """
    Find the event in the original tree that corresponds to an ancestry event.

    The owning INDI/FAM is looked up by ID in the original tree's record
    index, then each of its children is compared with events_match().
    """
    record_anc = owning_record(event_anc)
    record_orig = index.get(record_anc.get_pointer()) if record_anc is not None else None
    if record_orig is None:
        logger.warning(f"Could not match {describe_element(record_anc)}")
        return EventMatch(outcome=MatchOutcome.NO_RECORD)

    candidates = [e for e in record_orig.get_child_elements() if events_match(event_anc, e)]

    if not candidates:
        logger.warning(f"Could not match {describe_element(event_anc)}")
        return EventMatch(outcome=MatchOutcome.NO_EVENT)

    if len(candidates) > 1:
        logger.warning(f"Multiple events matched {describe_element(event_anc)}")
        for candidate in candidates:
            logger.warning(f"    {describe_element(candidate)}")
        return EventMatch(outcome=MatchOutcome.AMBIGUOUS, candidates=candidates)

    return EventMatch(outcome=MatchOutcome.UNIQUE, candidates=candidates)
