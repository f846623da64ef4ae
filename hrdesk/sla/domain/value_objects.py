"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

The service catalog lists the services employees can request and the
process steps each one goes through. It is loaded from YAML and only used
for validation hints and the due-date preview; due dates themselves come
from the rule catalog.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from hrdesk.sla.domain.rules import is_due_date_required, normalize_service


class CatalogService(BaseModel):
    """One requestable service."""
    name: str = Field(..., min_length=1, description="Display name, matched by the rule catalog")
    category: str = Field(default="General", description="Grouping shown in the request form")
    steps: List[str] = Field(default_factory=list, description="Process steps, in order")
    description: str = Field(default="")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return " ".join(v.split())

    @field_validator("steps")
    @classmethod
    def drop_blank_steps(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]

    @property
    def due_date_required(self) -> bool:
        return is_due_date_required(self.name)


class ServiceCatalog(BaseModel):
    """
    Service catalog loaded from YAML.

    This is a value object - immutable and defined by its attributes.
    """
    services: List[CatalogService] = Field(default_factory=list)

    @field_validator("services")
    @classmethod
    def unique_names(cls, v: List[CatalogService]) -> List[CatalogService]:
        seen = set()
        for service in v:
            key = normalize_service(service.name)
            if key in seen:
                raise ValueError(f"duplicate service '{service.name}'")
            seen.add(key)
        return v

    def get(self, name: Optional[str]) -> Optional[CatalogService]:
        key = normalize_service(name)
        for service in self.services:
            if normalize_service(service.name) == key:
                return service
        return None

    def has_service(self, name: Optional[str]) -> bool:
        return self.get(name) is not None

    def categories(self) -> List[str]:
        return sorted({s.category for s in self.services})
