"""
Card models for the preview pipeline.

CardConfig → Section → Field. All models are frozen: once the normalizer has
built a card, nothing downstream can change it.

Field is a tagged union. The normalizer picks the variant from which attributes
a raw field object carries; anything it cannot classify becomes a
GenericField rather than failing the parse.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field as PydanticField

Scalar = str | int | float | bool


class ValueField(BaseModel):
    """Label/value pair, the most common field shape."""

    model_config = {"frozen": True}

    kind: Literal["value"] = "value"
    id: str
    label: str
    value: Scalar | None = None
    type: str | None = None


class MetricField(BaseModel):
    """Numeric value with trend information."""

    model_config = {"frozen": True}

    kind: Literal["metric"] = "metric"
    id: str
    label: str
    value: float
    change: float | None = None
    trend: Literal["up", "down", "neutral"] | None = None
    percentage: float | None = None
    format: str | None = None


class ListItem(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["list_item"] = "list_item"
    id: str
    title: str
    description: str | None = None
    value: Scalar | None = None


class MapPoint(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["map_point"] = "map_point"
    id: str
    label: str = ""
    lat: float | None = None
    lng: float | None = None
    address: str | None = None


class ContactField(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["contact"] = "contact"
    id: str
    name: str
    role: str | None = None
    email: str | None = None
    phone: str | None = None


class GenericField(BaseModel):
    """Fallback variant: any object we could not classify, attributes kept as-is."""

    model_config = {"frozen": True}

    kind: Literal["generic"] = "generic"
    id: str
    label: str = ""
    attributes: dict[str, Any] = PydanticField(default_factory=dict)


Field = Annotated[
    ValueField | MetricField | ListItem | MapPoint | ContactField | GenericField,
    PydanticField(discriminator="kind"),
]


class Section(BaseModel):
    """
    One block within a card.

    `type` is always a known section tag or "generic"; the caller's original
    spelling is preserved in `raw_type`.
    """

    model_config = {"frozen": True}

    id: str
    title: str = ""
    type: str
    raw_type: str = ""
    description: str | None = None
    fields: tuple[Field, ...] = ()
    preferred_columns: int | None = PydanticField(default=None, ge=1, le=4)


class Action(BaseModel):
    model_config = {"frozen": True}

    id: str
    label: str
    kind: str | None = None
    target: str | None = None


class CardConfig(BaseModel):
    """A fully or partially parsed card."""

    model_config = {"frozen": True}

    id: str
    title: str = ""
    subtitle: str | None = None
    type: str = "generic"
    description: str | None = None
    sections: tuple[Section, ...] = ()
    actions: tuple[Action, ...] = ()

    def section_ids(self) -> list[str]:
        return [s.id for s in self.sections]

    def get_section(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the input format (cardTitle, cardType, sections, ...)."""
        payload: dict[str, Any] = {"id": self.id, "cardTitle": self.title, "cardType": self.type}
        if self.subtitle is not None:
            payload["cardSubtitle"] = self.subtitle
        if self.description is not None:
            payload["description"] = self.description
        payload["sections"] = [_section_payload(s) for s in self.sections]
        if self.actions:
            payload["actions"] = [a.model_dump(exclude_none=True) for a in self.actions]
        return payload

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_payload(), indent=indent, ensure_ascii=False)


def _section_payload(section: Section) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": section.id,
        "title": section.title,
        "type": section.raw_type or section.type,
    }
    if section.description is not None:
        payload["description"] = section.description
    if section.preferred_columns is not None:
        payload["preferredColumns"] = section.preferred_columns
    fields = []
    for f in section.fields:
        if isinstance(f, GenericField):
            fields.append({"id": f.id, **f.attributes})
        else:
            fields.append(f.model_dump(exclude={"kind"}, exclude_none=True))
    payload["fields"] = fields
    return payload
