"""
Fact record types (``pricing_kernel.domain.facts``).

Responsibility
--------------
The immutable fact record that rule conditions are evaluated against.
Common line-item attributes are explicit, named fields
(``LineItemFacts``); lead/account attributes and anything else genuinely
dynamic live in read-only mappings.  Dotted-path lookup works uniformly
across both.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* A fact record is built fresh per evaluation and never mutated.
* ``lookup`` never raises: a missing segment anywhere along the path, or a
  ``None`` value, resolves to ``None`` ("fact absent").
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Any


def _frozen_mapping(data: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class LineItemFacts:
    """Named line-item attributes addressable as ``line_item.<field>``."""

    job_profile_id: str | None = None
    job_id: str | None = None
    skill_level_id: str | None = None
    job_category: str | None = None
    job_title: str | None = None
    nationality: str | None = None
    location: str | None = None
    quantity: int = 1
    contract_duration: int = 12


@dataclass(frozen=True)
class FactRecord:
    """Read-only fact set for one evaluation.

    Top-level paths: ``line_item.*``, ``base_cost``, ``lead.*``, and any
    key of ``extra``.
    """

    line_item: LineItemFacts = field(default_factory=LineItemFacts)
    base_cost: Decimal | None = None
    lead: Mapping[str, Any] = field(default_factory=_frozen_mapping)
    extra: Mapping[str, Any] = field(default_factory=_frozen_mapping)

    def __post_init__(self) -> None:
        if not isinstance(self.lead, MappingProxyType):
            object.__setattr__(self, "lead", _frozen_mapping(self.lead))
        if not isinstance(self.extra, MappingProxyType):
            object.__setattr__(self, "extra", _frozen_mapping(self.extra))

    def lookup(self, path: str) -> Any:
        """Resolve a dotted path against the record.

        ``line_item.quantity`` -> ``self.line_item.quantity``
        ``lead.industry``      -> ``self.lead["industry"]``
        ``region.code``        -> ``self.extra["region"]["code"]``

        Returns None when any segment is missing.
        """
        head, _, rest = path.partition(".")
        if head in ("line_item", "base_cost", "lead"):
            current: Any = getattr(self, head)
        elif head in self.extra:
            current = self.extra[head]
        else:
            return None

        if not rest:
            return current
        for part in rest.split("."):
            current = _step(current, part)
            if current is None:
                return None
        return current

    def as_dict(self) -> dict[str, Any]:
        """Plain nested dict view (for tracing and fingerprinting)."""
        out: dict[str, Any] = dict(self.extra)
        out["line_item"] = {f.name: getattr(self.line_item, f.name) for f in fields(self.line_item)}
        out["base_cost"] = self.base_cost
        out["lead"] = dict(self.lead)
        return out


def _step(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(part)
    if is_dataclass(current) and not isinstance(current, type):
        return getattr(current, part, None)
    return None
