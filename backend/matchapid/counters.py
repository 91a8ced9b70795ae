"""Audit counters for a matching run."""

import logging

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("matchapid.counters")

SUMMARY_FORMAT = "%35s: %7d"


class AuditCounters(BaseModel):
    """Tallies of events and _APIDs seen during a run, cross-checked at the end."""
    events_with_apid_total: int = Field(default=0, ge=0, description="Ancestry events with at least one _APID citation.")
    events_with_apid_matched: int = Field(default=0, ge=0, description="Events matched to exactly one original event.")
    events_with_apid_not_matched: int = Field(default=0, ge=0, description="Events with no or ambiguous original match.")

    apids_total: int = Field(default=0, ge=0, description="_APID values found on ancestry citations.")
    apids_not_matched: int = Field(default=0, ge=0, description="_APIDs that could not be placed.")
    apids_already_existed: int = Field(default=0, ge=0, description="_APIDs already in the original (or already staged).")
    apids_added: int = Field(default=0, ge=0, description="_APIDs staged for insertion.")

    model_config = ConfigDict(validate_assignment=True)

    def record_result(self, code: int) -> None:
        """
        Count the outcome of a single-citation reconciliation.

        code is 1 when an _APID was staged, 0 when it already existed, and -c
        when c _APIDs were rejected.
        """
        if code < 0:
            self.apids_not_matched += -code
        elif code > 0:
            self.apids_added += code
        else:
            self.apids_already_existed += 1

    def check(self) -> list[str]:
        """Return a message for every total that does not add up."""
        errors = []
        if self.events_with_apid_total != self.events_with_apid_matched + self.events_with_apid_not_matched:
            errors.append("ERROR: Event numbers don't add up correctly.")
        if self.apids_total != self.apids_added + self.apids_already_existed + self.apids_not_matched:
            errors.append("ERROR: _APID numbers don't add up correctly.")
        return errors

    def summary_lines(self) -> list[str]:
        return [
            SUMMARY_FORMAT % ("Total count of events with _APID", self.events_with_apid_total),
            SUMMARY_FORMAT % ("    count of unmatched", self.events_with_apid_not_matched),
            SUMMARY_FORMAT % ("    count of matched", self.events_with_apid_matched),
            SUMMARY_FORMAT % ("Total count of _APIDs", self.apids_total),
            SUMMARY_FORMAT % ("    count of unmatched", self.apids_not_matched),
            SUMMARY_FORMAT % ("    count already in file", self.apids_already_existed),
            SUMMARY_FORMAT % ("    count added to file", self.apids_added),
        ]

    def log_summary(self, lines_added: int, log: logging.Logger = logger) -> bool:
        """Log the tallies and the cross-checks. Returns True if the totals reconcile."""
        for line in self.summary_lines():
            log.info(line)
        log.info(SUMMARY_FORMAT % ("Total new lines added to GEDCOM", lines_added))

        errors = self.check()
        for error in errors:
            log.error(error)
        return not errors
