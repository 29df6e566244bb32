"""
Configuration models for gitcollab.

Two kinds of configuration live here:

- GitCollabConfig: tool behaviour (API endpoint, timeouts, delays), loaded
  from layered JSON files and environment variables.
- CollabSettings: the persisted per-workspace record (repository fields,
  declared mode and per-repository tokens), rewritten whole on every change.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GitHubConfig(BaseModel):
    """
    Remote API settings.

    Controls which REST endpoint is used and how long calls may take.
    """

    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the hosting provider's REST API",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )


class GitConfig(BaseModel):
    """
    Git subprocess settings.
    """

    timeout: int = Field(
        default=120,
        ge=1,
        description="Timeout for a single git command in seconds",
    )
    remote: str = Field(
        default="origin",
        description="Name of the remote used for fetch/pull/push",
    )


class SyncConfig(BaseModel):
    """
    Synchronization timing and state location.
    """

    post_merge_delay: float = Field(
        default=1.0,
        ge=0,
        description="Seconds to wait after a merge before syncing the main branch",
    )
    remote_check_delay: float = Field(
        default=2.0,
        ge=0,
        description="Seconds to wait before the background remote-update check",
    )
    state_file: str = Field(
        default=".gitcollab/state.json",
        description="Workspace-relative path of the persisted settings record",
    )


class GitCollabConfig(BaseModel):
    """
    Complete gitcollab configuration.

    Built by the loader from defaults, user config, project config and
    environment variables, in increasing order of precedence.

    Example:
        >>> config = GitCollabConfig()
        >>> config.sync.post_merge_delay
        1.0
    """

    model_config = ConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)


DEFAULT_MAIN_BRANCH = "main"


class CollabSettings(BaseModel):
    """
    Persisted workspace record.

    Holds the repository configuration, the declared mode and the credential
    mapping. When `is_repository_connected` is False the branch fields are
    advisory only.
    """

    model_config = ConfigDict(validate_assignment=True)

    is_read_only_mode: bool = Field(
        default=True,
        description="Declared mode: True means read-only on the main branch",
    )
    repository_url: str = Field(default="", description="Remote repository URL")
    is_repository_connected: bool = Field(default=False)
    main_branch: str = Field(default=DEFAULT_MAIN_BRANCH)
    current_branch: str = Field(default=DEFAULT_MAIN_BRANCH)
    available_branches: list[str] = Field(default_factory=lambda: [DEFAULT_MAIN_BRANCH])
    last_working_branch: str = Field(default="")
    user_name: str = Field(default="", description="Commit author name")
    user_email: str = Field(default="", description="Commit author email")
    repository_tokens: dict[str, str] = Field(
        default_factory=dict,
        description="Access tokens keyed by normalized repository URL",
    )

    @field_validator("available_branches")
    @classmethod
    def _dedupe_branches(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for name in value:
            if name and name not in seen:
                seen.append(name)
        return seen

    def add_branch(self, name: str) -> bool:
        """
        Record a branch in `available_branches`.

        Returns:
            True if the branch was not known before
        """
        if name in self.available_branches:
            return False
        self.available_branches = [*self.available_branches, name]
        return True

    def reset_repository(self) -> None:
        """Clear the repository fields back to their disconnected defaults."""
        self.repository_url = ""
        self.is_repository_connected = False
        self.main_branch = DEFAULT_MAIN_BRANCH
        self.current_branch = DEFAULT_MAIN_BRANCH
        self.available_branches = [DEFAULT_MAIN_BRANCH]
        self.last_working_branch = ""
        self.is_read_only_mode = True
