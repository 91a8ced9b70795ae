"""GEDCOM parsing, export and field access utilities."""

import os
import tempfile
from typing import Iterable, NamedTuple

from gedcom.element.element import Element
from gedcom.parser import Parser


CONCATENATION_TAGS = ("CONC", "CONT")


# ============================================================================
# Parsing / Export
# ============================================================================

def parse_gedcom_file(file_path: str) -> Parser:
    """Parse a GEDCOM file and return the parser."""
    parser = Parser()
    parser.parse_file(file_path, strict=False)
    return parser


def parse_gedcom_content(content: str) -> Parser:
    """Parse GEDCOM content from a string."""
    # Write content to temp file (python-gedcom requires file path)
    with tempfile.NamedTemporaryFile(mode='w', suffix='.ged', delete=False, encoding='utf-8') as f:
        f.write(content)
        temp_path = f.name

    try:
        return parse_gedcom_file(temp_path)
    finally:
        os.unlink(temp_path)


def export_gedcom_content(parser: Parser) -> str:
    """Export the current GEDCOM parser state to a string."""
    lines = []

    def element_to_lines(element, level=0):
        """Recursively convert an element to GEDCOM lines."""
        pointer = element.get_pointer() or ""
        tag = element.get_tag()
        value = element.get_value() or ""

        if pointer:
            line = f"{level} {pointer} {tag}"
        else:
            line = f"{level} {tag}"

        if value:
            line += f" {value}"

        lines.append(line)

        for child in element.get_child_elements():
            element_to_lines(child, level + 1)

    root = parser.get_root_element()
    for child in root.get_child_elements():
        element_to_lines(child, 0)

    return "\n".join(lines) + "\n"


def concatenate_continuations(parser: Parser) -> int:
    """
    Fold CONC/CONT continuation lines into their parent's value.

    CONC text is appended directly, CONT text is appended after a newline.
    The continuation elements are removed from the tree.

    Returns:
        Number of continuation lines folded.
    """
    folded = 0
    pending = list(parser.get_root_child_elements())
    while pending:
        element = pending.pop()
        children = element.get_child_elements()
        continuations = [c for c in children if c.get_tag() in CONCATENATION_TAGS]
        if continuations:
            value = element.get_value() or ""
            for cont in continuations:
                if cont.get_tag() == "CONT":
                    value += "\n"
                value += cont.get_value() or ""
                children.remove(cont)
            element.set_value(value)
            folded += len(continuations)
        pending.extend(children)
    return folded


# ============================================================================
# Record Lookup
# ============================================================================

def normalize_id(record_id: str) -> str:
    """Return a cross-reference ID in '@X1@' form."""
    if not record_id.startswith('@'):
        record_id = f"@{record_id}@"
    return record_id


def build_record_index(parser: Parser) -> dict[str, Element]:
    """Map every top-level record's cross-reference ID to its element."""
    return parser.get_element_dictionary()


def find_record_by_id(parser: Parser, record_id: str) -> Element | None:
    """Find a top-level record (INDI, FAM, SOUR, ...) by its GEDCOM ID."""
    return build_record_index(parser).get(normalize_id(record_id))


def owning_record(element: Element) -> Element | None:
    """Walk up to the level-0 record that contains the element."""
    current = element
    while current is not None and current.get_level() > 0:
        current = current.get_parent_element()
    return current


# ============================================================================
# Field Accessors
# ============================================================================

class FieldValue(NamedTuple):
    """A record's payload: either literal text or a reference to another record."""
    text: str
    is_reference: bool

    @classmethod
    def of(cls, element: Element) -> "FieldValue":
        value = element.get_value() or ""
        return cls(value, is_pointer(value))

    def __str__(self) -> str:
        return self.text


def is_pointer(value: str) -> bool:
    """True if the value is a cross-reference like '@S12@'."""
    return len(value) > 2 and value.startswith('@') and value.endswith('@')


def field_value(element: Element | None) -> str:
    """Resolve a record's literal value or reference to a comparison string."""
    if element is None:
        return ""
    return str(FieldValue.of(element))


def get_child(element: Element, tag: str) -> Element | None:
    """First direct child with the given tag."""
    for child in element.get_child_elements():
        if child.get_tag() == tag:
            return child
    return None


def get_child_value(element: Element, tag: str) -> str:
    """Value of the first direct child with the given tag, or ''."""
    return field_value(get_child(element, tag))


def count_children(element: Element, tag: str) -> int:
    return sum(1 for child in element.get_child_elements() if child.get_tag() == tag)


def any_child_has(element: Element, tag: str, values: str | Iterable[str]) -> bool:
    """True if a direct child with the tag carries one of the given values."""
    if isinstance(values, str):
        values = (values,)
    for child in element.get_child_elements():
        if child.get_tag() == tag and (child.get_value() or "") in values:
            return True
    return False


# ============================================================================
# Record Construction
# ============================================================================

def create_pointer_element(level: int, tag: str, pointer_id: str) -> Element:
    """Build a detached element that references another record, e.g. '2 SOUR @S1@'."""
    return Element(level=level, pointer='', tag=tag, value=normalize_id(pointer_id), multi_line=False)


def create_child_element(parent: Element, tag: str, value: str) -> Element:
    """Build a detached element one level below the given parent."""
    return Element(level=parent.get_level() + 1, pointer='', tag=tag, value=value, multi_line=False)


def count_lines(element: Element) -> int:
    """Number of GEDCOM lines in the element's subtree, itself included."""
    return 1 + sum(count_lines(child) for child in element.get_child_elements())


# ============================================================================
# Diagnostics
# ============================================================================

def _describe_one(element: Element) -> str:
    tag = element.get_tag()
    pointer = element.get_pointer()
    value = FieldValue.of(element)

    if tag == "INDI":
        text = f"INDI {pointer} {get_child_value(element, 'NAME')}".rstrip()
    elif pointer:
        text = f"{tag} {pointer}"
    else:
        text = f"{tag} {value}".rstrip()
        if tag == "SOUR" and value.is_reference:
            apid = get_child_value(element, "_APID")
            if apid:
                text += f" <--- _APID {apid}"

    date = get_child_value(element, "DATE")
    if date:
        text += f" date: {date}"
    return text


def describe_element(element: Element | None) -> str:
    """
    Describe an element and its ancestors for log messages, outermost first.

    Example: 'INDI @I1@ John /Doe/ | BIRT date: 1 JAN 1900 | SOUR @S1@'
    """
    parts = []
    current = element
    while current is not None and current.get_level() >= 0:
        parts.append(_describe_one(current))
        current = current.get_parent_element()
    return " | ".join(reversed(parts))
