"""Customers -- reference parties selected on an invoice."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EntityType(str, Enum):
    """Legal form of a customer."""

    INDIVIDUAL = "individual"
    COMPANY = "company"
    GOVERNMENT = "government"


@dataclass(frozen=True)
class Customer:
    """
    Invoice customer.

    Selected from the reference catalog, never created by the engine.
    Carried through to display; no tax behavior is attached.
    """

    id: str
    name: str
    address: str
    entity_type: EntityType
    vat_number: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.entity_type, EntityType):
            object.__setattr__(self, "entity_type", EntityType(self.entity_type))

    @property
    def is_vat_registered(self) -> bool:
        return bool(self.vat_number)
