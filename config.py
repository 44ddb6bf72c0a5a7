"""Configuration module for loading environment variables and scan targets."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from heuristics import FRONTARY_EXTRA_KEYS, UI_EXTRA_KEYS
from scanner import MODE_KEY_CALLS, MODE_LITERALS, ScanProfile

# Load environment variables from .env file
load_dotenv()

TRUTHY_VALUES = {"1", "true", "yes", "y", "on"}


def get_env_var(
    name: str, default: str | None = None, required: bool = True
) -> str | None:
    """Get environment variable with optional default value."""
    value = os.getenv(name, default)
    if required and value is None:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def get_env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY_VALUES


def parse_log_level(value: str) -> int:
    """Map a level name such as "debug" or "WARNING" to its logging constant."""
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level in L10N_LOG_LEVEL: {value!r}")
    return level


@dataclass(frozen=True)
class RepoSpec:
    """A source repository to scan."""

    name: str
    url: str
    local_path: str | None
    source_dirs: tuple[str, ...]
    profile: ScanProfile
    stylesheet_dir: str | None = None
    extra_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class LanguageSpec:
    """A translation file, located relative to a repository root."""

    code: str
    repo: str
    path: str


# SSH key configuration (only needed for ssh:// or git@ URLs)
SSH_KEY_PATH: str | None = get_env_var("L10N_SSH_KEY", required=False)
SSH_KEY_PASSPHRASE: str | None = get_env_var("SSH_KEY_PASSPHRASE", required=False)

# Repository locations
UI_REPO_URL: str = os.getenv("L10N_UI_REPO_URL", "git@github.com:aicers/aice-web.git")
FRONTARY_REPO_URL: str = os.getenv(
    "L10N_FRONTARY_REPO_URL", "https://github.com/aicers/frontary.git"
)
UI_PATH: str | None = get_env_var("L10N_UI_PATH", required=False)
FRONTARY_PATH: str | None = get_env_var("L10N_FRONTARY_PATH", required=False)

# Expand nested translation objects into dotted paths
FLATTEN_NESTED: bool = get_env_bool("L10N_FLATTEN_NESTED")

LOG_LEVEL: str = os.getenv("L10N_LOG_LEVEL", "INFO").upper()

UI_REPO = "aice-web"
FRONTARY_REPO = "frontary"

REPOSITORIES: tuple[RepoSpec, ...] = (
    RepoSpec(
        name=UI_REPO,
        url=UI_REPO_URL,
        local_path=UI_PATH,
        source_dirs=("src",),
        profile=ScanProfile(
            mode=MODE_LITERALS,
            exclude_files=("src/triage/policy/data.rs", "src/detection/mitre.rs"),
        ),
        stylesheet_dir="static",
        extra_keys=UI_EXTRA_KEYS,
    ),
    RepoSpec(
        name=FRONTARY_REPO,
        url=FRONTARY_REPO_URL,
        local_path=FRONTARY_PATH,
        source_dirs=("",),
        profile=ScanProfile(mode=MODE_KEY_CALLS, display_markers=("text!",)),
        extra_keys=FRONTARY_EXTRA_KEYS,
    ),
)

LANGUAGES: tuple[LanguageSpec, ...] = (
    LanguageSpec(code="en-US", repo=UI_REPO, path="langs/en-US.json"),
    LanguageSpec(code="ko-KR", repo=UI_REPO, path="langs/ko-KR.json"),
)
