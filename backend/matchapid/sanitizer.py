"""Repair of known-corrupt Ancestry _APID values."""

import logging
import re

logger = logging.getLogger("matchapid.sanitizer")

# Placeholder written in place of a value that needs to be fixed by hand.
APID_SENTINEL = "__TODO__"

# Ancestry's export sometimes writes INT_MAX instead of the real record number.
APID_BUGGY_RECORD = 2147483647

APID_PATTERN = re.compile(r"(\d+,\d+::)(\d+).*", re.DOTALL)


def normalize_apid(apid: str) -> str:
    """Return the repaired form of an _APID value without logging anything."""
    match = APID_PATTERN.fullmatch(apid)
    if match is None:
        return APID_SENTINEL
    prefix, record = match.groups()
    if int(record) == APID_BUGGY_RECORD:
        return prefix + APID_SENTINEL
    return prefix + record


def sanitize_apid(apid: str) -> str:
    """
    Parse an _APID value of the form '<db>,<page>::<record>' and repair it.

    Unparsable values are replaced entirely with the sentinel, and a record
    number equal to 2147483647 (an export defect) has only its record part
    replaced. Trailing text after the record number is dropped.
    Each repair is logged so the output can be fixed manually.
    """
    sanitized = normalize_apid(apid)
    if sanitized == APID_SENTINEL:
        logger.warning(f"Detected unparsable _APID '{apid}'. Replacing with {APID_SENTINEL}, needs to be fixed manually.")
    elif sanitized.endswith(APID_SENTINEL):
        logger.warning(
            f"Detected _APID with {APID_BUGGY_RECORD}, which is most likely due to a bug in "
            f"Ancestry.com's export: '{apid}'. Replacing with {APID_SENTINEL}, needs to be fixed manually."
        )
    return sanitized


def apid_variants(apid: str) -> tuple[str, ...]:
    """
    Values under which an _APID may already be present in the original file.

    That is the raw value plus the repaired form that would be written for it,
    including the bare sentinel for an unparsable value.
    """
    sanitized = normalize_apid(apid)
    if sanitized == apid:
        return (apid,)
    return (apid, sanitized)
