"""Compare used keys with each language's defined keys and render the report."""

from dataclasses import dataclass
from typing import Iterable, Mapping


@dataclass(frozen=True)
class Discrepancy:
    language: str
    missing: tuple[str, ...] = ()
    unused: tuple[str, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.missing or self.unused)


def reconcile(
    all_strings: Iterable[str],
    key_sets: Mapping[str, Iterable[str]],
) -> list[Discrepancy]:
    """Return one discrepancy per language, in the order of *key_sets*.

    ``missing`` holds keys used in source but absent from the language file,
    ``unused`` holds keys defined in the file but never used. Both are sorted.
    """

    used = frozenset(all_strings)
    report: list[Discrepancy] = []
    for language, keys in key_sets.items():
        defined = frozenset(keys)
        report.append(
            Discrepancy(
                language=language,
                missing=tuple(sorted(used - defined)),
                unused=tuple(sorted(defined - used)),
            )
        )
    return report


def _format_section(title: str, language: str, keys: tuple[str, ...]) -> list[str]:
    lines = [f"{title} in {language}: {len(keys)}"]
    lines.extend(f"  {key}" for key in keys)
    return lines


def format_report(discrepancies: Iterable[Discrepancy]) -> str:
    lines: list[str] = []
    issues = 0
    for item in discrepancies:
        if not item.has_issues:
            lines.append(f"{item.language}: OK")
            continue
        issues += 1
        if item.missing:
            lines.extend(_format_section("MISSING", item.language, item.missing))
        if item.unused:
            lines.extend(_format_section("UNUSED", item.language, item.unused))
        lines.append("")

    if issues:
        lines.append(f"Discrepancies found in {issues} language(s).")
    else:
        lines.append("OK: No missing or unused localization keys.")
    return "\n".join(lines)
