"""Transplanting Ancestry _APID citations into an original GEDCOM tree.

The ancestry export is walked one event at a time. Each event that carries
_APID citations is matched to a single event in the original tree, and each
of its citations is then paired with a citation on the original event. New
_APID lines (and, in add mode, whole citations) are staged and only attached
once the walk is complete.
"""

import logging

from gedcom.element.element import Element
from gedcom.parser import Parser
from pydantic import BaseModel, Field

from gedcom_utils import (
    any_child_has,
    build_record_index,
    count_children,
    create_child_element,
    create_pointer_element,
    describe_element,
    field_value,
    get_child,
    get_child_value,
)
from .citations import APID_TAG, citations_by_source, count_apids
from .counters import AuditCounters
from .events import match_event
from .ledger import StagedInsertions
from .sanitizer import apid_variants, sanitize_apid

logger = logging.getLogger("matchapid.merge")

# Ancestry truncates citation PAGE values to this many characters.
ANCESTRY_PAGE_LEN_MAX = 256

RECORD_TAGS = ("INDI", "FAM")


def ancestry_pages_match(page_anc: str, page_orig: str) -> bool:
    """Compare an Ancestry PAGE with an original PAGE truncated the way Ancestry does."""
    return page_orig[:ANCESTRY_PAGE_LEN_MAX] == page_anc


class MatchApidResult(BaseModel):
    """Outcome of a complete run."""

    counters: AuditCounters
    insertions: int = Field(description="Number of staged insertions applied.")
    lines_added: int = Field(description="GEDCOM lines added to the original tree.")
    consistent: bool = Field(description="Whether the counter totals reconcile.")


class ApidMerger:
    """
    One matching run of an ancestry tree against an original tree.

    The original tree is only modified by run(), after every event has been
    processed.
    """

    def __init__(self, original: Parser, ancestry: Parser, add_citations: bool = False):
        self.original = original
        self.ancestry = ancestry
        self.add_citations = add_citations
        self.counters = AuditCounters()
        self.ledger = StagedInsertions()
        self._index = build_record_index(original)

    def run(self) -> MatchApidResult:
        self.match_apids()
        lines_added = self.ledger.line_count()
        insertions = self.ledger.apply()
        consistent = self.counters.log_summary(lines_added)
        return MatchApidResult(
            counters=self.counters,
            insertions=insertions,
            lines_added=lines_added,
            consistent=consistent,
        )

    # ------------------------------------------------------------------
    # Event walk
    # ------------------------------------------------------------------

    def match_apids(self) -> None:
        for record in self.ancestry.get_root_child_elements():
            if record.get_tag() not in RECORD_TAGS:
                continue
            for event in record.get_child_elements():
                if citations_by_source(event):
                    self.process_event(event)

    def process_event(self, event_anc: Element) -> None:
        c = self.counters
        c.events_with_apid_total += 1
        apids = count_apids(event_anc)
        c.apids_total += apids

        match = match_event(event_anc, self._index)
        if match.event is None:
            c.apids_not_matched += apids
            c.events_with_apid_not_matched += 1
            return

        self.merge_event_citations(event_anc, match.event)
        c.events_with_apid_matched += 1

    # ------------------------------------------------------------------
    # Citation reconciliation
    # ------------------------------------------------------------------

    def merge_event_citations(self, event_anc: Element, event_orig: Element) -> None:
        citas_by_source = citations_by_source(event_orig, all=True)
        for cita_anc in event_anc.get_child_elements():
            if cita_anc.get_tag() != "SOUR" or get_child(cita_anc, APID_TAG) is None:
                continue

            citas_orig = citas_by_source.get(field_value(cita_anc))
            if not citas_orig:
                self._merge_unmatched_source(cita_anc, event_orig)
            elif len(citas_orig) == 1:
                self.add_apid_and_count_it(cita_anc, citas_orig[0])
            else:
                self._merge_repeated_source(cita_anc, citas_orig)

    def _skip_if_corrupt(self, cita_anc: Element) -> bool:
        """Count and skip an ancestry citation that has more than one _APID."""
        apids = count_children(cita_anc, APID_TAG)
        if apids == 1:
            return False
        logger.warning(f"Skipping; found multiple _APID records for citation in Ancestry file: {describe_element(cita_anc)}")
        self.counters.apids_not_matched += apids
        return True

    def _merge_unmatched_source(self, cita_anc: Element, event_orig: Element) -> None:
        """The original event does not cite this source at all."""
        if self._skip_if_corrupt(cita_anc):
            return

        apid = get_child_value(cita_anc, APID_TAG)
        variants = apid_variants(apid)
        if (
            any(any_child_has(cita_orig, APID_TAG, variants) for cita_orig in event_orig.get_child_elements())
            or self._citation_pending(event_orig, variants)
        ):
            self.counters.apids_already_existed += 1
            sanitize_apid(apid)
            return

        source_id = field_value(cita_anc)
        if self.add_citations and source_id in self._index:
            self.add_new_citation(source_id, apid, event_orig)
            self.counters.apids_added += 1
        else:
            logger.warning(f"Cannot find original citation: {describe_element(cita_anc)} {describe_element(event_orig)}")
            self.counters.apids_not_matched += 1

    def _citation_pending(self, event_orig: Element, variants: tuple[str, ...]) -> bool:
        """True if a citation carrying one of these _APID values is already staged under the event."""
        return any(
            p.parent is event_orig and p.child.get_tag() == "SOUR" and any_child_has(p.child, APID_TAG, variants)
            for p in self.ledger
        )

    def _merge_repeated_source(self, cita_anc: Element, citas_orig: list[Element]) -> None:
        """The original event cites the same source more than once; try to narrow by PAGE."""
        page_anc = get_child_value(cita_anc, "PAGE")
        page_matches = []
        if page_anc:
            page_matches = [
                cita_orig for cita_orig in citas_orig
                if ancestry_pages_match(page_anc, get_child_value(cita_orig, "PAGE"))
            ]

        if len(page_matches) == 1:
            self.add_apid_and_count_it(cita_anc, page_matches[0])
            return

        if page_anc and not page_matches:
            # the original PAGE was probably edited after the export
            self.counters.apids_not_matched += count_children(cita_anc, APID_TAG)
            logger.warning(f"No original citation found: {describe_element(cita_anc)}")
            logger.warning(f"                           Ancestry PAGE {page_anc}")
            for cita_orig in citas_orig:
                logger.warning(f"                           Original PAGE {get_child_value(cita_orig, 'PAGE')}")
            return

        if self._skip_if_corrupt(cita_anc):
            return

        apid = get_child_value(cita_anc, APID_TAG)
        variants = apid_variants(apid)
        if any(any_child_has(cita_orig, APID_TAG, variants) for cita_orig in citas_orig):
            self.counters.apids_already_existed += 1
            return

        logger.warning(f"Found ambiguous original citations: {describe_element(cita_anc)}")
        if page_anc:
            logger.warning(f"                                    PAGE {page_anc}")
        self.counters.apids_not_matched += 1

    def add_apid_and_count_it(self, cita_anc: Element, cita_orig: Element) -> int:
        result = self.add_apid_safely(cita_anc, cita_orig)
        self.counters.record_result(result)
        return result

    def add_apid_safely(self, cita_anc: Element, cita_orig: Element) -> int:
        """
        Copy the _APID of one ancestry citation onto its paired original citation.

        Returns:
            0 if the _APID already exists (or is already staged),
            1 if a new _APID was staged,
            -c if c _APIDs were rejected as unmatched.
        """
        apids_anc = count_children(cita_anc, APID_TAG)
        if apids_anc != 1:
            logger.warning(f"Skipping; found multiple _APID records for citation in Ancestry file: {describe_element(cita_anc)}")
            return -apids_anc

        apid_anc = get_child_value(cita_anc, APID_TAG)
        variants = apid_variants(apid_anc)

        # never add to an original citation that is already corrupt
        if count_children(cita_orig, APID_TAG) > 1:
            logger.warning(f"Found multiple _APID records for citation in original file: {describe_element(cita_orig)}")
            sanitize_apid(apid_anc)
            if any_child_has(cita_orig, APID_TAG, variants):
                logger.warning(f"    but the one from Ancestry is already in there: {apid_anc}")
                return 0
            logger.warning(f"    even though none of them match, we still won't add the new one: {apid_anc}")
            return -1

        apid_orig = get_child_value(cita_orig, APID_TAG)
        if apid_orig in variants or self.ledger.is_pending(cita_orig, variants):
            sanitize_apid(apid_anc)
            return 0

        self.add_apid_forced(apid_anc, cita_orig)
        return 1

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def add_apid_forced(self, apid: str, cita_orig: Element) -> None:
        apid = sanitize_apid(apid)
        self.ledger.stage(cita_orig, create_child_element(cita_orig, APID_TAG, apid))
        logger.debug(f"Added _APID {apid} to original: {describe_element(cita_orig)}")

    def add_new_citation(self, source_id: str, apid: str, event_orig: Element) -> None:
        """Stage a new 'SOUR @S@' citation with an _APID under the original event."""
        apid = sanitize_apid(apid)
        cita = create_pointer_element(event_orig.get_level() + 1, "SOUR", source_id)
        cita.add_child_element(create_child_element(cita, APID_TAG, apid))
        self.ledger.stage(event_orig, cita)
        logger.debug(f"Added citation {source_id} with _APID {apid} to original: {describe_element(event_orig)}")
