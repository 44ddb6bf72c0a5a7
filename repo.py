"""Provide local checkouts of the repositories to scan."""

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Iterable, Mapping

from config import RepoSpec
from errors import AcquisitionError, FilesystemError

logger = logging.getLogger(__name__)

AGENT_VARIABLES = ("SSH_AUTH_SOCK", "SSH_AGENT_PID")
ASKPASS_SCRIPT = '#!/bin/sh\nprintf "%s\\n" "$SSH_KEY_PASSPHRASE"\n'


def is_ssh_url(url: str) -> bool:
    return url.startswith("ssh://") or ("@" in url and "://" not in url)


def ssh_target(url: str) -> str:
    """Return the ``user@host`` part of an SSH clone URL."""

    if url.startswith("ssh://"):
        authority = url[len("ssh://"):].split("/", 1)[0]
        return authority.split(":", 1)[0]
    return url.split(":", 1)[0]


def _run(args: list[str], error: str, **kwargs) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True, text=True, check=False, **kwargs)
    except OSError as e:
        raise AcquisitionError(f"{error}: {e}", command=args[0]) from e


def parse_agent_output(output: str) -> dict[str, str]:
    """Extract SSH_AUTH_SOCK and SSH_AGENT_PID from ``ssh-agent -s`` output."""

    variables: dict[str, str] = {}
    for line in output.splitlines():
        assignment = line.split(";", 1)[0].strip()
        if "=" not in assignment:
            continue
        key, value = assignment.split("=", 1)
        if key in AGENT_VARIABLES:
            variables[key] = value
    return variables


def _add_key(ssh_key_path: Path, passphrase: str | None) -> None:
    if passphrase is None:
        result = _run(["ssh-add", str(ssh_key_path)], "Failed to run ssh-add", stdin=subprocess.DEVNULL)
    else:
        with tempfile.TemporaryDirectory(prefix="l10n-askpass-") as helper_dir:
            askpass = Path(helper_dir) / "askpass.sh"
            askpass.write_text(ASKPASS_SCRIPT, encoding="utf-8")
            askpass.chmod(0o700)
            env = {
                **os.environ,
                "SSH_ASKPASS": str(askpass),
                "SSH_ASKPASS_REQUIRE": "force",
                "DISPLAY": os.environ.get("DISPLAY", ":0"),
                "SSH_KEY_PASSPHRASE": passphrase,
            }
            result = _run(
                ["ssh-add", str(ssh_key_path)],
                "Failed to run ssh-add",
                env=env,
                stdin=subprocess.DEVNULL,
            )
    if result.returncode != 0:
        raise AcquisitionError(
            "Failed to add SSH key to agent.",
            path=ssh_key_path,
            stderr=result.stderr.strip() or None,
        )


def setup_ssh_agent(
    ssh_key_path: Path,
    passphrase: str | None = None,
    target: str = "git@github.com",
) -> None:
    """Load *ssh_key_path* into an SSH agent and check that *target* accepts it.

    A new agent is started when none is reachable through SSH_AUTH_SOCK.
    """

    ssh_key_path = Path(ssh_key_path)
    if not ssh_key_path.exists():
        raise AcquisitionError("SSH key not found at the specified path.", path=ssh_key_path)

    if not os.environ.get("SSH_AUTH_SOCK"):
        result = _run(["ssh-agent", "-s"], "Failed to start ssh-agent")
        variables = parse_agent_output(result.stdout)
        if result.returncode != 0 or "SSH_AUTH_SOCK" not in variables:
            raise AcquisitionError("Failed to start ssh-agent", stderr=result.stderr.strip() or None)
        os.environ.update(variables)
        logger.info("Started ssh-agent (pid %s)", variables.get("SSH_AGENT_PID", "?"))

    _add_key(ssh_key_path, passphrase)

    result = _run(
        ["ssh", "-T", "-o", "BatchMode=yes", target],
        "Failed to execute SSH command",
        stdin=subprocess.DEVNULL,
    )
    if "successfully authenticated" not in result.stderr:
        raise AcquisitionError(
            "SSH authentication test failed.",
            target=target,
            stderr=result.stderr.strip() or None,
        )
    logger.info("SSH authentication to %s succeeded", target)


class RepoManager:
    """Owns the temporary directory that holds fresh clones for one run."""

    def __init__(self) -> None:
        self._temp_dir: tempfile.TemporaryDirectory | None = None

    @property
    def path(self) -> Path:
        if self._temp_dir is None:
            self._temp_dir = tempfile.TemporaryDirectory(prefix="l10n-check-")
        return Path(self._temp_dir.name)

    def clone(self, repo_url: str, dest_name: str) -> Path:
        dest_path = self.path / dest_name
        logger.info("Cloning repository: %s", repo_url)
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        result = _run(
            ["git", "clone", "--depth", "1", repo_url, str(dest_path)],
            "Failed to run git",
            env=env,
        )
        if result.returncode != 0:
            raise AcquisitionError(
                "Failed to clone repository.",
                url=repo_url,
                stderr=result.stderr.strip() or None,
            )
        logger.info("Successfully cloned %s", repo_url)
        return dest_path

    def cleanup(self) -> None:
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None

    def __enter__(self) -> "RepoManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()


def _local_override(spec: RepoSpec, overrides: Mapping[str, str | None]) -> str | None:
    return overrides.get(spec.name) or spec.local_path


def needs_ssh(specs: Iterable[RepoSpec], overrides: Mapping[str, str | None]) -> list[RepoSpec]:
    """Return the specs that will be cloned over SSH."""

    return [
        spec
        for spec in specs
        if not _local_override(spec, overrides) and is_ssh_url(spec.url)
    ]


def resolve_repositories(
    specs: Iterable[RepoSpec],
    manager: RepoManager,
    overrides: Mapping[str, str | None] | None = None,
) -> dict[str, Path]:
    """Map each repository name to a local directory, cloning when needed."""

    overrides = overrides or {}
    roots: dict[str, Path] = {}
    for spec in specs:
        local = _local_override(spec, overrides)
        if local:
            root = Path(local).expanduser()
            if not root.is_dir():
                raise FilesystemError("Local repository path not found", path=root, repo=spec.name)
            logger.info("Using local checkout for %s: %s", spec.name, root)
            roots[spec.name] = root
        else:
            roots[spec.name] = manager.clone(spec.url, spec.name)
    return roots
