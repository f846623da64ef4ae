"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from hrdesk.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    RequestNotFoundException,
    ConfigurationException,
    MissingColumnException,
    TransitionError,
    LockTimeoutException,
    ExternalServiceException,
    BlobStorageException,
)
from hrdesk.core.result import Result

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "RequestNotFoundException",
    "ConfigurationException",
    "MissingColumnException",
    "TransitionError",
    "LockTimeoutException",
    "ExternalServiceException",
    "BlobStorageException",
    "Result",
]
