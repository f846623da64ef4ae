"""
Shared API
==========

Middleware, exception handlers and dependencies shared by all routers.
"""
