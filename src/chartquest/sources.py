"""Chart source resolution.

Turns a chart reference into a local directory holding the chart contents:

- ``http(s)://.../chart.tgz`` is downloaded and extracted.
- ``oci://host/path[:version]`` is pulled with helm when available, or
  replaced by a deterministic synthetic chart otherwise.

Every successful resolution hands back a ``ResolvedChart`` whose cleanup
removes the whole temporary tree exactly once.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import requests

from chartquest.archive import extract_archive
from chartquest.config import ChartQuestConfig, OciConfig, load_config
from chartquest.errors import FetchError, InvalidReferenceError
from chartquest.synthetic import version_from_reference, write_synthetic_chart

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

MAX_REFERENCE_LENGTH = 2048
SUPPORTED_SCHEMES = ("http", "https", "oci")
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ChartReference:
    """A validated chart reference."""

    raw: str
    scheme: str
    host: str
    path: str

    @property
    def is_oci(self) -> bool:
        return self.scheme == "oci"

    @property
    def redacted(self) -> str:
        """The reference with any user:password part removed, for logs."""
        host: str = self.host.rsplit("@", 1)[-1]
        return f"{self.scheme}://{host}{self.path}"

    @property
    def version(self) -> str | None:
        """The ``:version`` suffix of an OCI reference."""
        if not self.is_oci:
            return None
        return version_from_reference(self.path)

    @property
    def unversioned(self) -> str:
        """The OCI reference without its ``:version`` suffix."""
        head, _, last = self.raw.rstrip("/").rpartition("/")
        return f"{head}/{last.split(':', 1)[0]}"


def validate_reference(reference: str | None) -> ChartReference:
    """Check a chart reference before any network or disk activity.

    Raises:
        InvalidReferenceError: for empty, oversized or malformed references,
            and for schemes other than http, https and oci.
    """
    if reference is None or not reference.strip():
        raise InvalidReferenceError("Chart reference must not be empty")

    if len(reference) > MAX_REFERENCE_LENGTH:
        raise InvalidReferenceError(
            f"Chart reference is longer than {MAX_REFERENCE_LENGTH} characters"
        )

    if any(ch.isspace() or not ch.isprintable() for ch in reference):
        raise InvalidReferenceError(
            "Chart reference contains whitespace or control characters"
        )

    try:
        parts = urlsplit(reference)
    except ValueError as e:
        raise InvalidReferenceError("Chart reference is not a valid URL") from e

    scheme: str = parts.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise InvalidReferenceError(
            "Chart reference must use http, https or oci"
        )

    if not parts.netloc:
        raise InvalidReferenceError("Chart reference has no host")

    if scheme == "oci" and not parts.path.strip("/"):
        raise InvalidReferenceError("OCI chart reference has no chart path")

    return ChartReference(raw=reference, scheme=scheme, host=parts.netloc, path=parts.path)


class ResolvedChart:
    """A chart materialized on local disk.

    Usable as a context manager; ``cleanup`` deletes the directory tree and
    is safe to call more than once.
    """

    def __init__(self, path: Path):
        self.path: Path = path
        self._cleaned = False

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    def cleanup(self) -> None:
        if self._cleaned:
            return
        self._cleaned = True
        shutil.rmtree(self.path, ignore_errors=True)

    def __enter__(self) -> Path:
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()


class OciStrategy(ABC):
    """How an OCI reference becomes a chart directory."""

    name: str = "oci"

    @abstractmethod
    def pull(self, reference: ChartReference, dest_dir: Path) -> None:
        """Populate ``dest_dir`` with the chart contents."""
        pass


class HelmPullStrategy(OciStrategy):
    """Delegate to ``helm pull --untar``."""

    name = "helm"

    def __init__(self, helm_binary: str = "helm"):
        self.helm_binary: str = helm_binary

    def build_command(self, reference: ChartReference, dest_dir: Path) -> list[str]:
        cmd: list[str] = [
            self.helm_binary,
            "pull",
            reference.unversioned,
            "--destination",
            str(dest_dir),
            "--untar",
        ]
        if reference.version:
            cmd.extend(["--version", reference.version])
        return cmd

    def pull(self, reference: ChartReference, dest_dir: Path) -> None:
        cmd: list[str] = self.build_command(reference, dest_dir)

        try:
            result: CompletedProcess[str] = subprocess.run(
                cmd, capture_output=True, text=True, check=True
            )
        except subprocess.CalledProcessError as e:
            output: str = "\n".join(part for part in (e.stdout, e.stderr) if part)
            raise FetchError("Failed to pull OCI chart", details=output.strip()) from e
        except FileNotFoundError as e:
            raise FetchError("helm command not found. Please install Helm.") from e

        logger.debug("helm pull finished: %s", result.stdout.strip())


class SyntheticChartStrategy(OciStrategy):
    """Write a deterministic placeholder chart instead of pulling."""

    name = "synthetic"

    def pull(self, reference: ChartReference, dest_dir: Path) -> None:
        chart_dir: Path = write_synthetic_chart(reference.raw, dest_dir)
        logger.info(
            "helm unavailable, using synthetic chart '%s' for %s",
            chart_dir.name,
            reference.redacted,
        )


def select_oci_strategy(config: OciConfig) -> OciStrategy:
    """Pick the OCI strategy once, based on configuration and helm availability."""
    if config.strategy == "synthetic":
        return SyntheticChartStrategy()
    if config.strategy == "helm":
        return HelmPullStrategy(config.helm_binary)
    if shutil.which(config.helm_binary):
        return HelmPullStrategy(config.helm_binary)
    return SyntheticChartStrategy()


class SourceResolver:
    """Resolve chart references into local directories."""

    def __init__(
        self,
        config: ChartQuestConfig | None = None,
        oci_strategy: OciStrategy | None = None,
    ):
        self.config: ChartQuestConfig = config or load_config()
        self._oci_strategy: OciStrategy | None = oci_strategy

    @property
    def workdir(self) -> Path | None:
        if not self.config.workdir:
            return None
        path = Path(self.config.workdir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def resolve(self, reference: str) -> ResolvedChart:
        """Materialize ``reference`` into a fresh temporary directory.

        Raises:
            InvalidReferenceError: before any I/O for malformed references.
            FetchError: when the download or pull fails.
            ExtractionError: when the archive cannot be unpacked.
        """
        ref: ChartReference = validate_reference(reference)
        root = Path(tempfile.mkdtemp(prefix="chartquest-", dir=self.workdir))

        try:
            if ref.is_oci:
                self._resolve_oci(ref, root)
            else:
                self._resolve_http(ref, root)
        except BaseException:
            shutil.rmtree(root, ignore_errors=True)
            raise

        return ResolvedChart(root)

    def _resolve_oci(self, ref: ChartReference, dest_dir: Path) -> None:
        strategy: OciStrategy = self._oci_strategy or select_oci_strategy(self.config.oci)
        logger.debug("Resolving %s with %s strategy", ref.redacted, strategy.name)
        strategy.pull(ref, dest_dir)

    def _resolve_http(self, ref: ChartReference, dest_dir: Path) -> None:
        with tempfile.NamedTemporaryFile(
            prefix="chartquest-", suffix=".tgz", dir=self.workdir, delete=False
        ) as tmp:
            archive_path = Path(tmp.name)

        try:
            self._download(ref, archive_path)
            extract_archive(archive_path, dest_dir)
        finally:
            archive_path.unlink(missing_ok=True)

    def _download(self, ref: ChartReference, dest_file: Path) -> None:
        logger.debug("Downloading %s", ref.redacted)
        try:
            response: requests.Response = requests.get(
                ref.raw,
                stream=True,
                timeout=self.config.fetch.timeout_seconds,
                headers={"User-Agent": self.config.fetch.user_agent},
            )
        except requests.RequestException as e:
            raise FetchError(f"Failed to download chart: {type(e).__name__}") from e

        try:
            if not 200 <= response.status_code < 300:
                raise FetchError(
                    f"Failed to download chart: HTTP {response.status_code} {response.reason or ''}".rstrip(),
                    status_code=response.status_code,
                )

            with dest_file.open("wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except requests.RequestException as e:
            raise FetchError(f"Failed to download chart: {type(e).__name__}") from e
        finally:
            response.close()
