"""
cardflow Kernel — the pure engine.

Stages, in pipeline order:
  syntax     — strict validation with position + suggestion
  recovery   — best-effort object from truncated / malformed text
  normalize  — raw dict → frozen CardConfig with stable ids
  differ     — (previous, current) → minimal changed-set by section id
  priority   — section type/title/shape → placement priority + span
  layout     — prioritized sections + width + heights → masonry slots
"""

from cardflow.kernel.differ import diff_cards
from cardflow.kernel.layout import MasonryLayout, compute_layout
from cardflow.kernel.models import CardConfig, Section
from cardflow.kernel.normalize import normalize_card
from cardflow.kernel.priority import PriorityResolver, prioritize_sections, resolve_priority
from cardflow.kernel.recovery import recover_partial
from cardflow.kernel.syntax import format_json, validate_syntax

__all__ = [
    "validate_syntax",
    "format_json",
    "recover_partial",
    "normalize_card",
    "diff_cards",
    "resolve_priority",
    "prioritize_sections",
    "PriorityResolver",
    "compute_layout",
    "MasonryLayout",
    "CardConfig",
    "Section",
]
