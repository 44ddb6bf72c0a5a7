"""Main entry point for the localization key checker."""

import argparse
import itertools
import logging
import sys
from pathlib import Path
from typing import Iterable, Mapping

import config
from config import LANGUAGES, REPOSITORIES, LanguageSpec, RepoSpec
from errors import AcquisitionError, CheckerError, FilesystemError
from key_filter import filter_keys
from reconciler import Discrepancy, format_report, reconcile
from repo import RepoManager, needs_ssh, resolve_repositories, setup_ssh_agent, ssh_target
from scanner import ScanStats, collect_selectors, scan_sources
from translations import load_key_set

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DISCREPANCIES = 1
EXIT_FAILURE = 2


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check that translation files match the keys used in source."
    )
    parser.add_argument(
        "--ssh-key",
        default=config.SSH_KEY_PATH,
        help="Private key for cloning over SSH (needed only for SSH URLs)",
    )
    parser.add_argument(
        "--ui-path",
        default=config.UI_PATH,
        help=f"Local {config.UI_REPO} checkout to use instead of cloning",
    )
    parser.add_argument(
        "--frontary-path",
        default=config.FRONTARY_PATH,
        help=f"Local {config.FRONTARY_REPO} checkout to use instead of cloning",
    )
    parser.add_argument(
        "--flatten-nested",
        action="store_true",
        default=config.FLATTEN_NESTED,
        help="Compare nested translation keys by dotted path",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=False)
    return parser.parse_args(argv)


def collect_used_keys(specs: Iterable[RepoSpec], roots: Mapping[str, Path]) -> frozenset[str]:
    """Scan every repository and return the filtered keys plus static extras."""

    used: set[str] = set()
    for spec in specs:
        root = roots[spec.name]
        selectors: frozenset[str] = frozenset()
        if spec.stylesheet_dir:
            selectors = collect_selectors(root / spec.stylesheet_dir)

        stats = ScanStats()
        candidates = itertools.chain.from_iterable(
            scan_sources(root / source_dir, spec.profile, origin=spec.name, stats=stats)
            for source_dir in spec.source_dirs
        )
        keys = filter_keys(candidates, selectors)
        logger.info(
            "%s: scanned %s files, %s candidates, %s keys (%s skipped files)",
            spec.name,
            stats.files,
            stats.candidates,
            len(keys),
            len(stats.skipped),
        )
        used.update(keys)
        used.update(spec.extra_keys)
    return frozenset(used)


def load_languages(
    languages: Iterable[LanguageSpec],
    roots: Mapping[str, Path],
    flatten: bool = False,
) -> dict[str, frozenset[str]]:
    key_sets: dict[str, frozenset[str]] = {}
    for language in languages:
        root = roots.get(language.repo)
        if root is None:
            raise FilesystemError("No repository for translation file", repo=language.repo)
        key_sets[language.code] = load_key_set(root / language.path, flatten=flatten)
    return key_sets


def _prepare_ssh(specs: list[RepoSpec], ssh_key: str | None) -> None:
    if not specs:
        return
    if not ssh_key:
        raise AcquisitionError(
            "An SSH key is required to clone " + ", ".join(spec.url for spec in specs)
        )
    key_path = Path(ssh_key).expanduser()
    if not key_path.exists():
        raise AcquisitionError("SSH key not found", path=key_path)
    for target in sorted({ssh_target(spec.url) for spec in specs}):
        setup_ssh_agent(key_path, config.SSH_KEY_PASSPHRASE, target)


def run(
    args: argparse.Namespace,
    repositories: Iterable[RepoSpec] = REPOSITORIES,
    languages: Iterable[LanguageSpec] = LANGUAGES,
) -> list[Discrepancy]:
    repositories = tuple(repositories)
    overrides = {
        config.UI_REPO: args.ui_path,
        config.FRONTARY_REPO: args.frontary_path,
    }
    with RepoManager() as manager:
        _prepare_ssh(needs_ssh(repositories, overrides), args.ssh_key)
        roots = resolve_repositories(repositories, manager, overrides)
        key_sets = load_languages(languages, roots, flatten=args.flatten_nested)
        used = collect_used_keys(repositories, roots)
    return reconcile(used, key_sets)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    try:
        level = logging.DEBUG if args.verbose else config.parse_log_level(config.LOG_LEVEL)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_FAILURE
    logging.getLogger().setLevel(level)

    try:
        report = run(args)
    except CheckerError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return EXIT_FAILURE
    except Exception:
        logger.exception("Check aborted by an unexpected error")
        return EXIT_FAILURE

    print(format_report(report))
    if any(item.has_issues for item in report):
        return EXIT_DISCREPANCIES
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
