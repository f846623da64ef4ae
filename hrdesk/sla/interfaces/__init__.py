"""
SLA Interfaces Layer
====================

Interface adapters (controllers) for the SLA module.

Contains:
- Controllers: FastAPI route handlers

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from hrdesk.sla.interfaces.controllers import catalog_router, sla_router

__all__ = ["catalog_router", "sla_router"]
