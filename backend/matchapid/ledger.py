"""Staged insertions into the original tree, applied once at the end of a run."""

import logging
from typing import Iterable, NamedTuple

from gedcom.element.element import Element

from gedcom_utils import count_lines, describe_element

logger = logging.getLogger("matchapid.ledger")


class PendingInsertion(NamedTuple):
    """A detached subtree and the original-tree element it will be attached to."""
    parent: Element
    child: Element


class StagedInsertions:
    """
    Append-only list of pending insertions.

    Nothing is attached while the ancestry tree is being walked; apply()
    attaches every staged child to its parent exactly once.
    """

    def __init__(self):
        self._pending: list[PendingInsertion] = []
        self._applied = False

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self):
        return iter(self._pending)

    @property
    def applied(self) -> bool:
        return self._applied

    def stage(self, parent: Element, child: Element) -> PendingInsertion:
        if self._applied:
            raise RuntimeError("Insertions have already been applied; cannot stage more")
        if child.get_parent_element() is not None:
            raise RuntimeError(f"Element is already attached: {describe_element(child)}")
        if any(p.child is child for p in self._pending):
            raise RuntimeError(f"Element is already staged: {child.get_tag()} {child.get_value()}")

        insertion = PendingInsertion(parent, child)
        self._pending.append(insertion)
        return insertion

    def is_pending(self, parent: Element, values: str | Iterable[str]) -> bool:
        """True if a child with one of the given values is already staged under parent."""
        if isinstance(values, str):
            values = (values,)
        values = set(values)
        for p in self._pending:
            if p.parent is parent and (p.child.get_value() or "") in values:
                return True
        return False

    def line_count(self) -> int:
        """Total GEDCOM lines the staged subtrees will add."""
        return sum(count_lines(p.child) for p in self._pending)

    def apply(self) -> int:
        """
        Attach every staged child to its parent.

        Returns:
            Number of insertions applied.
        """
        if self._applied:
            raise RuntimeError("Staged insertions were already applied")
        self._applied = True

        for p in self._pending:
            p.parent.add_child_element(p.child)
        logger.debug(f"Applied {len(self._pending)} staged insertions")
        return len(self._pending)
