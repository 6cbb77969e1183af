"""Named chart repositories and chart reference resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from chartquest.errors import RepositoryNotFoundError

if TYPE_CHECKING:
    from chartquest.config import ChartQuestConfig


@dataclass(frozen=True)
class Repository:
    """A chart repository."""

    name: str
    url: str
    description: str = ""

    @property
    def type(self) -> str:
        """'oci' for registries, 'http' for classic index-based repositories."""
        return "oci" if self.url.startswith("oci://") else "http"

    def chart_reference(self, chart: str, version: str | None = None) -> str:
        """Build the reference for a chart in this repository.

        ``oci://<base>/<chart>:<version>`` for registries,
        ``<url>/<chart>-<version>.tgz`` otherwise. A missing version
        becomes ``latest``.
        """
        base: str = self.url.rstrip("/")
        tag: str = version or "latest"
        if self.type == "oci":
            return f"{base}/{chart}:{tag}"
        return f"{base}/{chart}-{tag}.tgz"


DEFAULT_REPOSITORIES: tuple[Repository, ...] = (
    Repository(
        "rancher-partner",
        "https://git.rancher.io/partner-charts",
        "Rancher Partner Charts Repository",
    ),
    Repository("bitnami", "https://charts.bitnami.com/bitnami", "Bitnami Helm Charts"),
    Repository("stable", "https://charts.helm.sh/stable", "Helm Stable Charts (Deprecated)"),
    Repository(
        "ingress-nginx",
        "https://kubernetes.github.io/ingress-nginx",
        "NGINX Ingress Controller",
    ),
    Repository(
        "suse-application-collection",
        "oci://dp.apps.rancher.io/charts",
        "SUSE Application Collection (OCI)",
    ),
)


class RepositoryCatalog:
    """Built-in repositories plus those declared in the config file.

    A configured repository with the same name as a built-in one replaces it.
    """

    def __init__(self, config: ChartQuestConfig | None = None):
        self._repositories: dict[str, Repository] = {
            repo.name: repo for repo in DEFAULT_REPOSITORIES
        }
        if config is not None:
            for repo_config in config.repositories:
                if not repo_config.name or not repo_config.url:
                    continue
                self._repositories[repo_config.name] = Repository(
                    name=repo_config.name,
                    url=repo_config.url,
                    description=repo_config.description,
                )

    def list_repositories(self) -> list[Repository]:
        return list(self._repositories.values())

    def get(self, name: str) -> Repository:
        repo: Repository | None = self._repositories.get(name)
        if repo is None:
            raise RepositoryNotFoundError(name)
        return repo

    def resolve(self, repository: str, chart: str, version: str | None = None) -> str:
        """Chart reference for ``chart`` in the named repository.

        Raises:
            RepositoryNotFoundError: if the repository is unknown.
        """
        return self.get(repository).chart_reference(chart, version)
