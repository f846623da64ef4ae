"""
Infrastructure Layer
=====================

Shared technical infrastructure:
- Database connection management
"""
