"""
Request Tracking Module
=======================

Bounded context for HR service requests.

Responsibilities:
- Submit requests and allocate request IDs per business unit
- Drive the Start/Pause/Resume/End lifecycle with TAT accumulation
- Merge every business unit's table into one unified log
"""

__version__ = "1.0.0"
