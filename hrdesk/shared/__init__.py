"""
Shared Kernel Module
====================

This module contains shared infrastructure and domain elements used across
all bounded contexts (Tracking and SLA).

Architecture Pattern: Modular Monolith
- Each module (tracking, sla) is a bounded context
- Shared kernel contains only generic infrastructure and the caller context

DO NOT add business logic from Tracking or SLA to shared kernel.
"""

__version__ = "1.0.0"
