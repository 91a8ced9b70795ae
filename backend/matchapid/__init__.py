from .citations import APID_TAG, citations_by_source, count_apids
from .counters import AuditCounters
from .events import EventMatch, MatchOutcome, events_match, is_unique, match_event, places_match
from .ledger import PendingInsertion, StagedInsertions
from .merge import ANCESTRY_PAGE_LEN_MAX, ApidMerger, MatchApidResult, ancestry_pages_match
from .sanitizer import APID_SENTINEL, apid_variants, normalize_apid, sanitize_apid

__all__ = [
    "APID_TAG",
    "citations_by_source",
    "count_apids",
    "AuditCounters",
    # Event matching
    "EventMatch",
    "MatchOutcome",
    "events_match",
    "is_unique",
    "match_event",
    "places_match",
    # Staging
    "PendingInsertion",
    "StagedInsertions",
    # Merge engine
    "ANCESTRY_PAGE_LEN_MAX",
    "ApidMerger",
    "MatchApidResult",
    "ancestry_pages_match",
    # _APID repair
    "APID_SENTINEL",
    "apid_variants",
    "normalize_apid",
    "sanitize_apid",
]
