"""Grouping of an event's source citations by the source they cite."""

from gedcom.element.element import Element

from gedcom_utils import count_children, field_value, get_child

APID_TAG = "_APID"


def citations_by_source(event: Element, all: bool = False) -> dict[str, list[Element]]:
    """
    Group the event's direct SOUR children by their source pointer.

    With all=False only citations carrying an _APID are included. Citations
    citing the same source keep their order within the group.
    """
    groups: dict[str, list[Element]] = {}
    for cita in event.get_child_elements():
        if cita.get_tag() != "SOUR":
            continue
        if all or get_child(cita, APID_TAG) is not None:
            groups.setdefault(field_value(cita), []).append(cita)
    return groups


def count_apids(event: Element) -> int:
    """Number of _APID values on the event's citations."""
    return sum(
        count_children(cita, APID_TAG)
        for cita in event.get_child_elements()
        if cita.get_tag() == "SOUR"
    )
