import tempfile
import unittest
from pathlib import Path

from errors import FilesystemError
from scanner import (
    MODE_KEY_CALLS,
    MODE_LITERALS,
    ScanProfile,
    ScanStats,
    _preceding_lines,
    collect_selectors,
    extract_candidates,
    scan_sources,
)
from tests._fixtures import write_tree

UI_SOURCE = """fn view(ctx: &Context<Self>) -> Html {
    let title = text!(ctx.props().txt, ctx.props().language, "greeting.hello");
    let name = "plain value";
    html! { <div>{ title }{ name }</div> }
}
"""

FRONTARY_SOURCE = """fn view(&self, ctx: &Context<Self>) -> Html {
    let add = text!(ctx.props().txt, ctx.props().language, "Add");
    let ignored = "not a key";
    let multi = text!(
        ctx.props().txt,
        ctx.props().language,
        "Multi line"
    );
    let save = ViewString::Key("Save".to_string());
}
"""


def _values(content: str, profile: ScanProfile) -> list[str]:
    return [c.value for c in extract_candidates(content, Path("lib.rs"), profile)]


class PrecedingLinesTests(unittest.TestCase):
    def test_nearest_first_with_current_prefix(self) -> None:
        content = 'a\nb\nlet x = "k"'
        self.assertEqual(
            ("let x =", "b", "a"), _preceding_lines(content, content.index('"'))
        )

    def test_quote_at_line_start_skips_empty_prefix(self) -> None:
        content = 'a\nb\n"k"'
        self.assertEqual(("b", "a"), _preceding_lines(content, content.index('"')))

    def test_limited_to_four_lines(self) -> None:
        content = "1\n2\n3\n4\n5\n6\n  \"k\""
        self.assertEqual(("", "6", "5", "4"), _preceding_lines(content, content.index('"')))

    def test_start_of_file(self) -> None:
        self.assertEqual((), _preceding_lines('"k"', 0))


class ExtractCandidatesTests(unittest.TestCase):
    def test_literals_mode_yields_every_literal(self) -> None:
        candidates = list(
            extract_candidates(UI_SOURCE, Path("lib.rs"), ScanProfile(mode=MODE_LITERALS))
        )
        self.assertEqual(["greeting.hello", "plain value"], [c.value for c in candidates])
        self.assertTrue(candidates[0].key_call)
        self.assertFalse(candidates[1].key_call)
        self.assertEqual(2, candidates[0].line)
        self.assertEqual(3, candidates[1].line)
        self.assertEqual('let name = "plain value";', candidates[1].line_text)

    def test_escaped_quotes_stay_raw(self) -> None:
        content = 'let s = "say \\"hi\\"";'
        self.assertEqual(['say \\"hi\\"'], _values(content, ScanProfile()))

    def test_key_calls_mode_keeps_only_key_bearing_literals(self) -> None:
        values = _values(FRONTARY_SOURCE, ScanProfile(mode=MODE_KEY_CALLS))
        self.assertEqual(["Add", "Multi line", "Save"], values)

    def test_multi_line_call_requires_props_context(self) -> None:
        content = 'text!(\n    other,\n    "Not a key"\n);\n'
        self.assertEqual([], _values(content, ScanProfile(mode=MODE_KEY_CALLS)))

    def test_sole_argument_of_custom_forms_is_captured(self) -> None:
        profile = ScanProfile(
            mode=MODE_KEY_CALLS,
            display_markers=("display_text(",),
            lookup_markers=("lookup_text(",),
        )
        self.assertEqual(["greeting.hello"], _values('lookup_text("greeting.hello")', profile))
        self.assertEqual(["menu.title"], _values('display_text("menu.title")', profile))

    def test_header_values_are_captured(self) -> None:
        content = 'let req = req.header("Content-Type", "application/json");\n'
        candidates = list(
            extract_candidates(content, Path("api.rs"), ScanProfile(mode=MODE_KEY_CALLS))
        )
        self.assertEqual(["application/json"], [c.value for c in candidates])
        self.assertTrue(all(c.header for c in candidates))

    def test_header_name_is_not_a_key(self) -> None:
        profile = ScanProfile(mode=MODE_KEY_CALLS)
        self.assertEqual([], _values('req.header("Authorization", token);', profile))
        self.assertEqual(
            ["greeting.hello"],
            _values('headers.insert("X-Lang", "greeting.hello");', profile),
        )


class ScanSourcesTests(unittest.TestCase):
    def test_missing_root_fails_before_iteration(self) -> None:
        with self.assertRaises(FilesystemError):
            scan_sources(Path("/nonexistent/source/root"), ScanProfile())

    def test_walks_matching_files_and_honours_exclusions(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = write_tree(
                Path(tmp),
                {
                    "src/lib.rs": 'let a = "kept.key";',
                    "src/nested/view.rs": 'let b = "nested.key";',
                    "src/bin/tool.rs": 'let c = "bin.key";',
                    "src/detection/mitre.rs": 'let d = "mitre.key";',
                    "src/readme.md": '"markdown.key"',
                },
            )
            profile = ScanProfile(exclude_files=("src/detection/mitre.rs",))
            stats = ScanStats()
            values = {c.value for c in scan_sources(root / "src", profile, stats=stats)}
        self.assertEqual({"kept.key", "nested.key"}, values)
        self.assertEqual(2, stats.files)
        self.assertEqual(2, stats.candidates)

    def test_non_utf8_files_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = write_tree(
                Path(tmp),
                {
                    "bad.rs": b'\xff\xfe let x = "binary";',
                    "good.rs": 'let y = "good.key";',
                },
            )
            stats = ScanStats()
            values = [c.value for c in scan_sources(root, ScanProfile(), origin="ui", stats=stats)]
        self.assertEqual(["good.key"], values)
        self.assertEqual([root / "bad.rs"], stats.skipped)


class CollectSelectorsTests(unittest.TestCase):
    def test_collects_classes_and_ids(self) -> None:
        css = ".btn-primary { color: red; }\n#main-nav, div.card { margin: 0; }\n"
        with tempfile.TemporaryDirectory() as tmp:
            root = write_tree(Path(tmp), {"static/theme.css": css, "static/app.js": ".ignored"})
            selectors = collect_selectors(root / "static")
        self.assertEqual(frozenset({"btn-primary", "main-nav", "card"}), selectors)

    def test_missing_directory_raises(self) -> None:
        with self.assertRaises(FilesystemError):
            collect_selectors(Path("/nonexistent/static"))
