"""
BBS Common module.

This module contains shared domain models, errors and interfaces used across
the build status notifier components (notifier, persistence, CLIs).

The common module has no dependencies on other bbs_* modules, making it
a pure domain layer that can be imported by any component.
"""

from .errors import (
    BuildStatusError,
    ConfigurationError,
    CredentialsMissing,
    RepositoryIdentityError,
    StatusDeliveryError,
    UnsupportedSourceControl,
)
from .models import (
    Build,
    BuildResult,
    BuildStatus,
    Credentials,
    JobDefinition,
    ScmSource,
    StatusResource,
    TestSummary,
)
from .repository import CredentialRepository

__all__ = [
    "Build",
    "BuildResult",
    "BuildStatus",
    "BuildStatusError",
    "ConfigurationError",
    "CredentialRepository",
    "Credentials",
    "CredentialsMissing",
    "JobDefinition",
    "RepositoryIdentityError",
    "ScmSource",
    "StatusDeliveryError",
    "StatusResource",
    "TestSummary",
    "UnsupportedSourceControl",
]
