"""Run identity and environment probes."""

import importlib.metadata
import platform
import secrets
import subprocess
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from pubdedupe.audit.models import RunEnvironment

__all__ = [
    "RUNTIME_DEPENDENCIES",
    "describe_environment",
    "distribution_version",
    "generate_run_id",
    "git_revision",
    "source_revision",
]

# Distributions whose versions go into every manifest
RUNTIME_DEPENDENCIES: tuple[str, ...] = ("click", "jsonschema")


def generate_run_id() -> str:
    """Return a sortable, unique run id ("<UTC timestamp>__<8 hex chars>")."""
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    return f"{stamp}__{secrets.token_hex(4)}"


def distribution_version(name: str) -> str:
    """Installed version of a distribution, "unknown" when absent."""
    try:
        return importlib.metadata.version(name)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def git_revision(cwd: Path | None = None) -> str | None:
    """Short commit hash of the checkout around ``cwd``, if any.

    Parameters
    ----------
    cwd : Path | None, optional
        Directory to ask git about, by default the working directory.

    Returns
    -------
    str | None
        Seven-character hash, or None outside a repository or without git.
    """
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--short=7", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return completed.stdout.strip() or None


def source_revision() -> str:
    """Identify the code that ran: "git:<sha>" or the package version."""
    sha = git_revision()
    return f"git:{sha}" if sha else distribution_version("pubdedupe")


def describe_environment(argv: Sequence[str] | None = None) -> RunEnvironment:
    """Collect launch details for the manifest.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        Command line; ``sys.argv`` when None.

    Returns
    -------
    RunEnvironment
        Interpreter, platform and library versions.
    """
    return RunEnvironment(
        argv=list(sys.argv if argv is None else argv),
        cwd=Path.cwd().name or None,
        python=platform.python_version(),
        platform=f"{platform.system()}-{platform.release()}-{platform.machine()}",
        pubdedupe=distribution_version("pubdedupe"),
        dependencies={name: distribution_version(name) for name in RUNTIME_DEPENDENCIES},
    )
