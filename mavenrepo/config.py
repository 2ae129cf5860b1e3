"""
mavenrepo Repository
Introductory remarks: This module is part of the mavenrepo codebase.

Runtime settings for the repository server.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from mavenrepo.storage.blob_links import DEFAULT_BLOB_URL_TEMPLATE
from mavenrepo.utils.env import env_flag, env_str


@dataclass(frozen=True)
class RepositoryConfig:
    """One bucket exposed under ``/<name>/``."""

    name: str
    maven_shaped: bool = True

    @property
    def default_configuration(self) -> Optional[str]:
        """Gradle configuration consumers should declare dependencies in."""
        if self.name == "gradle-plugins":
            return None
        if self.name == "tools":
            return "tool"
        return "implementation"


BUILD_CACHE_REPOSITORY = "build-cache"

DEFAULT_REPOSITORIES: tuple[RepositoryConfig, ...] = (
    # Java/Kotlin libraries.
    RepositoryConfig("public"),
    # Tool bundles: a 'tool' classifier zip with bin/ and lib/ directories.
    RepositoryConfig("tools"),
    RepositoryConfig("gradle-plugins"),
    # Projects built with Gradle's native plugins.
    RepositoryConfig("native"),
    RepositoryConfig(BUILD_CACHE_REPOSITORY, maven_shaped=False),
)

DEFAULT_PUBLIC_URL = "https://spacemaven.derfruhling.net"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one application instance."""

    data_path: Path = Path("data")
    development: bool = False
    blob_url_template: str = DEFAULT_BLOB_URL_TEMPLATE
    public_url: str = DEFAULT_PUBLIC_URL
    blob_bucket: Optional[str] = None
    blob_prefix: str = ""
    catalog_table: Optional[str] = None
    repositories: tuple[RepositoryConfig, ...] = field(
        default=DEFAULT_REPOSITORIES
    )

    def repository(self, name: str) -> Optional[RepositoryConfig]:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None

    def repository_root(self, name: str) -> Path:
        return self.data_path.absolute() / name


def load_settings(overrides: Mapping[str, Any] | None = None) -> Settings:
    """Build settings from the environment, then apply ``overrides``."""

    settings = Settings(
        data_path=Path(env_str("DATA_PATH", "data")),
        development=env_flag("MAVENREPO_DEVELOPMENT"),
        blob_url_template=env_str(
            "MAVENREPO_BLOB_URL_TEMPLATE", DEFAULT_BLOB_URL_TEMPLATE
        ),
        public_url=env_str("MAVENREPO_PUBLIC_URL", DEFAULT_PUBLIC_URL),
        blob_bucket=env_str("ARTIFACT_STORAGE_BUCKET", "") or None,
        blob_prefix=env_str("ARTIFACT_STORAGE_PREFIX", ""),
        catalog_table=env_str("CATALOG_TABLE", "") or None,
    )
    if overrides:
        values = dict(overrides)
        if "data_path" in values:
            values["data_path"] = Path(values["data_path"])
        settings = replace(settings, **values)
    return settings
