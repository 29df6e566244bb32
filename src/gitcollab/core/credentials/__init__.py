"""
Credential store module.

Per-repository tokens keyed by normalized repository URL.
"""

from gitcollab.core.credentials.store import (
    CredentialError,
    CredentialStore,
    normalize_repository_url,
)

__all__ = [
    "CredentialError",
    "CredentialStore",
    "normalize_repository_url",
]
