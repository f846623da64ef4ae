"""
SLA Domain Layer
================

Domain layer for due dates and SLA reporting.

Contains:
- Calendar: date arithmetic primitives (working days, recurring dates)
- Rules: the ordered due-date rule catalog
- Classifier: stateless TAT/SLA bucketing for reports
- Value objects: the requestable service catalog

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from hrdesk.sla.domain.rules import (
    DueDateRule,
    DueDateResult,
    RULE_CATALOG,
    DUE_DATE_REQUIRED_SERVICES,
    NO_MATCH,
    compute_due_date,
    evaluate_due_date,
    find_rule,
    is_due_date_required,
    normalize_service,
    normalize_step,
)
from hrdesk.sla.domain.classifier import (
    SLAClassifier,
    BucketCounts,
    ServiceRollup,
    TrendPoint,
    histogram_band,
    empty_histogram,
)
from hrdesk.sla.domain.value_objects import CatalogService, ServiceCatalog

__all__ = [
    # Rules
    "DueDateRule",
    "DueDateResult",
    "RULE_CATALOG",
    "DUE_DATE_REQUIRED_SERVICES",
    "NO_MATCH",
    "compute_due_date",
    "evaluate_due_date",
    "find_rule",
    "is_due_date_required",
    "normalize_service",
    "normalize_step",
    # Classification
    "SLAClassifier",
    "BucketCounts",
    "ServiceRollup",
    "TrendPoint",
    "histogram_band",
    "empty_histogram",
    # Catalog
    "CatalogService",
    "ServiceCatalog",
]
