"""Source tree scanning: pull string literals that may be translation keys."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Iterable, Iterator

from errors import FilesystemError

logger = logging.getLogger(__name__)

# A double-quoted literal, allowing escaped characters (including \") inside.
LITERAL_RE = re.compile(r'"([^"\\]*(\\.[^"\\]*)*)"')
CLASS_SELECTOR_RE = re.compile(r"(?:[a-zA-Z]+\.)?\.([a-zA-Z][a-zA-Z0-9_-]*)")
ID_SELECTOR_RE = re.compile(r"(?:[a-zA-Z]+#)?#([a-zA-Z][a-zA-Z0-9_-]*)")

CONTEXT_LINES = 4

MODE_LITERALS = "literals"
MODE_KEY_CALLS = "key_calls"


@dataclass(frozen=True)
class ScanProfile:
    """How one repository is walked and which literals it yields."""

    mode: str = MODE_LITERALS
    extensions: tuple[str, ...] = (".rs",)
    exclude_dirs: tuple[str, ...] = ("src/bin",)
    exclude_files: tuple[str, ...] = ()
    display_markers: tuple[str, ...] = ("text!(",)
    lookup_markers: tuple[str, ...] = ("ViewString::Key",)
    header_markers: tuple[str, ...] = (".header(", "headers.insert(")
    props_marker: str = "ctx.props()"


@dataclass(frozen=True)
class Candidate:
    value: str
    path: Path
    line: int
    line_text: str = ""
    preceding: tuple[str, ...] = ()
    key_call: bool = False
    header: bool = False
    origin: str = ""


@dataclass
class ScanStats:
    files: int = 0
    candidates: int = 0
    skipped: list[Path] = field(default_factory=list)


def _path_ends_with(path: Path, suffix: str) -> bool:
    tail = PurePath(suffix).parts
    return path.parts[-len(tail):] == tail


def iter_files(
    root: Path,
    extensions: Iterable[str],
    *,
    exclude_dirs: Iterable[str] = (),
    exclude_files: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield files under *root* with a matching suffix, in sorted order."""

    extensions = tuple(extensions)
    exclude_dirs = tuple(exclude_dirs)
    exclude_files = tuple(exclude_files)
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        raise FilesystemError(f"Cannot list directory: {e}", path=root) from e

    for entry in entries:
        if entry.is_dir():
            if any(_path_ends_with(entry, d) for d in exclude_dirs):
                continue
            yield from iter_files(
                entry,
                extensions,
                exclude_dirs=exclude_dirs,
                exclude_files=exclude_files,
            )
        elif entry.suffix in extensions and not any(
            _path_ends_with(entry, f) for f in exclude_files
        ):
            yield entry


def _preceding_lines(content: str, end: int) -> tuple[str, ...]:
    """Return up to four stripped lines ending at *end*, nearest first.

    The first entry is the text of the current line up to *end*, unless *end*
    sits right at the start of a line.
    """

    window_start = end
    for _ in range(CONTEXT_LINES + 1):
        window_start = content.rfind("\n", 0, window_start)
        if window_start == -1:
            break
    lines = content[window_start + 1 : end].split("\n")
    if lines[-1] == "":
        lines.pop()
    return tuple(line.strip() for line in reversed(lines[-CONTEXT_LINES:]))


def _is_key_call(preceding: tuple[str, ...], profile: ScanProfile) -> bool:
    if profile.mode == MODE_LITERALS:
        if not preceding:
            return False
        markers = profile.display_markers + profile.lookup_markers
        return any(marker in preceding[0] for marker in markers)

    nearest = next((line for line in preceding if line), "")
    for index, line in enumerate(preceding):
        if index == 0 and any(marker in line for marker in profile.lookup_markers):
            return True
        if any(marker in line for marker in profile.display_markers) and (
            index == 0 or profile.props_marker in nearest
        ):
            return True
    return False


def _is_header_value(line: str, profile: ScanProfile) -> bool:
    """True when *line* ends inside a header call, past the header name."""

    starts = [line.rfind(marker) + len(marker) for marker in profile.header_markers if marker in line]
    if not starts:
        return False
    return "," in line[max(starts):]


def extract_candidates(
    content: str,
    path: Path,
    profile: ScanProfile,
    origin: str = "",
) -> Iterator[Candidate]:
    """Yield candidates found in one file's *content*."""

    for match in LITERAL_RE.finditer(content):
        quote = match.start()
        preceding = _preceding_lines(content, quote)
        key_call = _is_key_call(preceding, profile)
        header = bool(preceding) and _is_header_value(preceding[0], profile)
        if profile.mode == MODE_KEY_CALLS and not (key_call or header):
            continue

        line_start = content.rfind("\n", 0, quote) + 1
        line_end = content.find("\n", quote)
        if line_end == -1:
            line_end = len(content)
        yield Candidate(
            value=match.group(1),
            path=path,
            line=content.count("\n", 0, quote) + 1,
            line_text=content[line_start:line_end].strip(),
            preceding=preceding,
            key_call=key_call,
            header=header,
            origin=origin,
        )


def scan_sources(
    root: Path,
    profile: ScanProfile,
    *,
    origin: str = "",
    stats: ScanStats | None = None,
) -> Iterator[Candidate]:
    """Return a lazy stream of candidates for every source file under *root*.

    Raises FilesystemError right away when *root* is not a directory. Files
    that are not valid UTF-8 are logged and skipped.
    """

    root = Path(root)
    if not root.is_dir():
        raise FilesystemError("Source directory not found", path=root, origin=origin or None)
    stats = stats if stats is not None else ScanStats()
    return _scan(root, profile, origin, stats)


def _scan(root: Path, profile: ScanProfile, origin: str, stats: ScanStats) -> Iterator[Candidate]:
    for path in iter_files(
        root,
        profile.extensions,
        exclude_dirs=profile.exclude_dirs,
        exclude_files=profile.exclude_files,
    ):
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Skipping non-UTF-8 file %s: %s", path, e)
            stats.skipped.append(path)
            continue
        except OSError as e:
            raise FilesystemError(f"Cannot read source file: {e}", path=path) from e

        stats.files += 1
        for candidate in extract_candidates(content, path, profile, origin):
            stats.candidates += 1
            yield candidate


def collect_selectors(root: Path, extensions: Iterable[str] = (".css",)) -> frozenset[str]:
    """Return the CSS class and id names defined in stylesheets under *root*."""

    root = Path(root)
    if not root.is_dir():
        raise FilesystemError("Stylesheet directory not found", path=root)

    selectors: set[str] = set()
    for path in iter_files(root, extensions):
        try:
            content = path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as e:
            logger.warning("Skipping stylesheet %s: %s", path, e)
            continue
        for line in content.splitlines():
            selectors.update(CLASS_SELECTOR_RE.findall(line))
            selectors.update(ID_SELECTOR_RE.findall(line))
    return frozenset(selectors)
