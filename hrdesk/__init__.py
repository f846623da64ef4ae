"""
HR Service Desk
===============

HR service request backend: due-date rules, request lifecycle with TAT
tracking, unified cross-company log and SLA reporting.
"""

__version__ = "1.0.0"
