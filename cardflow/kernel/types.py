"""
cardflow Kernel — Shared Types

Data classes passed between the pipeline stages: syntax validator, recovery
parser, differ, priority resolver and layout engine. These are the contracts
that bind the kernel together. Card content itself (CardConfig, Section, Field)
lives in `cardflow.kernel.models`.

Every value here is frozen: a stage hands a freshly built result to the next
stage and never mutates what it received.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from cardflow.kernel.models import CardConfig, Section

# ---------------------------------------------------------------------------
# Section type registry
# ---------------------------------------------------------------------------

# Fallback tag for section types we do not recognise.
GENERIC_SECTION_TYPE = "generic"

SECTION_TYPES: set[str] = {
    # identity / contact
    "contact-card",
    "contact",
    "network-card",
    "profile",
    # overview
    "overview",
    # analytics
    "analytics",
    "stats",
    "metrics",
    "financials",
    # geo
    "map",
    "locations",
    # charts
    "chart",
    # list / info
    "info",
    "list",
    "product",
    "solutions",
    "table",
    "project",
    # narrative / event
    "event",
    "timeline",
    "news",
    "quotation",
    "text-reference",
    # media
    "gallery",
    "video",
    "faq",
    "social-media",
    "brand-colors",
}

CARD_TYPES: set[str] = {
    "company",
    "contact",
    "opportunity",
    "product",
    "analytics",
    "project",
    "event",
}

FIELD_KINDS: set[str] = {"value", "metric", "list_item", "map_point", "contact", "generic"}

ErrorKind = Literal["syntax", "recovery_exhausted", "structural", "internal"]


# ---------------------------------------------------------------------------
# Syntax / parse outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErrorInfo:
    """User-facing failure: a short message and a best-effort position. No stack detail."""

    kind: ErrorKind
    message: str
    position: int | None = None
    suggestion: str = ""


@dataclass(frozen=True)
class SyntaxReport:
    """
    Result of strict syntax validation.

    `is_empty` marks the "no card yet" state (blank text or `{}`), which is
    valid and distinct from malformed text.
    """

    is_valid: bool
    is_empty: bool = False
    error: str = ""
    position: int | None = None
    suggestion: str = ""


@dataclass(frozen=True)
class RecoveryResult:
    """Best-effort object rebuilt from truncated or malformed text."""

    data: dict
    strategy: Literal["balance", "extract"]
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Valid:
    card: CardConfig
    tag: Literal["valid"] = "valid"


@dataclass(frozen=True)
class Recovered:
    card: CardConfig
    notes: tuple[str, ...] = ()
    tag: Literal["recovered"] = "recovered"


@dataclass(frozen=True)
class Failed:
    error: ErrorInfo
    tag: Literal["failed"] = "failed"


ParseOutcome = Valid | Recovered | Failed


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SectionDiff:
    """Field-level changes inside one section present in both cards."""

    added_fields: frozenset[str] = frozenset()
    removed_fields: frozenset[str] = frozenset()
    changed_fields: frozenset[str] = frozenset()
    props_changed: bool = False
    order_changed: bool = False

    @property
    def has_changes(self) -> bool:
        return bool(
            self.added_fields or self.removed_fields or self.changed_fields or self.props_changed or self.order_changed
        )


@dataclass(frozen=True)
class DiffResult:
    """
    Minimal changed-set between two cards, keyed by section id.
    Produced once per differ invocation, consumed once, then discarded.
    """

    added: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()
    changed: dict[str, SectionDiff] = field(default_factory=dict)
    unchanged: frozenset[str] = frozenset()
    header_changed: bool = False

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed or self.header_changed)


# ---------------------------------------------------------------------------
# Priority + layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SectionShape:
    """What the priority resolver sees of a section's content."""

    field_count: int = 0
    dominant_kind: str | None = None


@dataclass(frozen=True)
class SectionPriority:
    priority: int
    preferred_columns: int


@dataclass(frozen=True)
class PrioritizedSection:
    """Layout input: a section with its resolved priority and requested span."""

    section: Section
    priority: int
    preferred_columns: int

    @property
    def section_id(self) -> str:
        return self.section.id


@dataclass(frozen=True)
class LayoutSlot:
    section_id: str
    column_span: int
    row_offset: float
    column_offset: int
    height: float = 0.0


@dataclass(frozen=True)
class LayoutResult:
    columns: int
    breakpoint: str
    slots: tuple[LayoutSlot, ...] = ()
    container_height: float = 0.0

    def slot_for(self, section_id: str) -> LayoutSlot | None:
        for slot in self.slots:
            if slot.section_id == section_id:
                return slot
        return None
