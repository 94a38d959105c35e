"""Abstract base class for record equality policies.

An equality policy decides whether two observations are "materially the
same" for caching purposes.  Only the record's identity key takes part;
display fields never do.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable

from src.models.records import Record


class IEqualityPolicy(ABC):
    """Contract for comparing two records (or ``None``) by identity.

    Subclasses only choose the identity key; the ``None`` handling in
    :meth:`equal` is shared so every source treats a transition into or
    out of "nothing reported" the same way.
    """

    @abstractmethod
    def identity(self, record: Record) -> Hashable:
        """Return the fields of *record* whose change is material."""

    def equal(self, a: Record | None, b: Record | None) -> bool:
        """Return ``True`` if *a* and *b* are materially the same.

        ``None``/``None`` is equal; ``None`` against a record is not.  Two
        records are equal iff their identity keys match exactly
        (case-sensitive, no normalization).
        """
        if a is None and b is None:
            return True
        if a is None or b is None:
            return False
        return self.identity(a) == self.identity(b)
