"""
Service layer for gitcollab.

CollabSession wires the core components for one workspace; interfaces
use it instead of building components themselves.
"""

from gitcollab.core.services.session import CollabSession, github_factory

__all__ = [
    "CollabSession",
    "github_factory",
]
