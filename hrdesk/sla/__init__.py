"""
SLA Module
==========

Bounded Context for due dates and service level reporting.

Responsibilities:
- Compute request due dates from the ordered rule catalog
- Classify requests into SLA buckets for compliance reports
- Load the service catalog with hot-reload via watchdog
- Log reminder-due requests from a background sweep
"""

__version__ = "1.0.0"
