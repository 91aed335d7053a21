"""
cardflow Kernel — Card Differ

Pure function: (previous card | None, current card) → DiffResult

Sections are correlated by id, never by position:
  - only in current  → added
  - only in previous → removed
  - in both          → field-by-field compare (by field id) → changed / unchanged

Moving a section around does not change it. A renderer can therefore patch only
the changed sections and leave in-flight animation or focus on the others alone;
placement is the layout engine's job.
"""

from __future__ import annotations

from cardflow.kernel.models import CardConfig, Section
from cardflow.kernel.types import DiffResult, SectionDiff

_SECTION_PROPS = ("title", "type", "raw_type", "description", "preferred_columns")
_HEADER_PROPS = ("id", "title", "subtitle", "type", "description", "actions")


def diff_cards(previous: CardConfig | None, current: CardConfig) -> DiffResult:
    """
    Compare two cards and return the minimal changed-set.

    Args:
        previous: Last card handed to the renderer, or None on first render
        current: Newly parsed card

    Returns:
        DiffResult keyed by section id
    """
    if previous is None:
        return DiffResult(
            added=frozenset(current.section_ids()),
            header_changed=True,
        )

    old_sections = {s.id: s for s in previous.sections}
    new_sections = {s.id: s for s in current.sections}

    added = frozenset(sid for sid in new_sections if sid not in old_sections)
    removed = frozenset(sid for sid in old_sections if sid not in new_sections)

    changed: dict[str, SectionDiff] = {}
    unchanged: set[str] = set()
    for sid, new_section in new_sections.items():
        old_section = old_sections.get(sid)
        if old_section is None:
            continue
        section_diff = diff_sections(old_section, new_section)
        if section_diff.has_changes:
            changed[sid] = section_diff
        else:
            unchanged.add(sid)

    header_changed = any(getattr(previous, p) != getattr(current, p) for p in _HEADER_PROPS)

    return DiffResult(
        added=added,
        removed=removed,
        changed=changed,
        unchanged=frozenset(unchanged),
        header_changed=header_changed,
    )


def diff_sections(old: Section, new: Section) -> SectionDiff:
    """Field-level comparison of two versions of the same section."""
    old_fields = {f.id: f for f in old.fields}
    new_fields = {f.id: f for f in new.fields}

    added = frozenset(fid for fid in new_fields if fid not in old_fields)
    removed = frozenset(fid for fid in old_fields if fid not in new_fields)
    modified = frozenset(fid for fid, f in new_fields.items() if fid in old_fields and old_fields[fid] != f)

    # Field order is rendered inside the section, so it counts as a change there.
    common_old = [fid for fid in old_fields if fid in new_fields]
    common_new = [fid for fid in new_fields if fid in old_fields]

    return SectionDiff(
        added_fields=added,
        removed_fields=removed,
        changed_fields=modified,
        props_changed=any(getattr(old, p) != getattr(new, p) for p in _SECTION_PROPS),
        order_changed=common_old != common_new,
    )
