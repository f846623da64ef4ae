"""
Tracking Interfaces Layer
=========================

Interface adapters (controllers) for request tracking.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from hrdesk.tracking.interfaces.controllers import tracking_router

__all__ = ["tracking_router"]
