"""Unit tests for token substitution (mythix_cli.scaffolder.tokens).

Tests cover:
- substitute_file_name (known, unknown, boundaries, marker cleanup, dunders)
- substitute_content (known, unknown, untokenized input, no re-scanning)
- load_template_helpers (missing file, valid helpers, broken helpers)
- build_token_context (built-ins, helper merge, precedence, immutability)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from mythix_cli.scaffolder.tokens import (
    HELPERS_FILE_NAME,
    build_token_context,
    load_template_helpers,
    substitute_content,
    substitute_file_name,
)


@pytest.fixture
def context():
    return {"APP_NAME": lambda: "demo", "VERSION": lambda: "1.0"}


# ---------------------------------------------------------------------------
# substitute_file_name
# ---------------------------------------------------------------------------


class TestSubstituteFileName:
    @pytest.mark.unit
    def test_known_token_replaced(self, context):
        assert substitute_file_name("__APP_NAME__.config.js", context) == "demo.config.js"

    @pytest.mark.unit
    def test_unknown_token_keeps_name(self, context):
        assert substitute_file_name("__MISSING__.txt", context) == "MISSING.txt"

    @pytest.mark.unit
    def test_multiple_tokens(self, context):
        assert substitute_file_name("__APP_NAME__-__VERSION__.tar", context) == "demo-1.0.tar"

    @pytest.mark.unit
    def test_no_tokens_unchanged(self, context):
        assert substitute_file_name("package.json", context) == "package.json"

    @pytest.mark.unit
    def test_lowercase_dunder_untouched(self, context):
        assert substitute_file_name("__init__.py", context) == "__init__.py"
        assert substitute_file_name("__pycache__", context) == "__pycache__"

    @pytest.mark.unit
    def test_token_inside_word_is_not_resolved(self, context):
        # No word boundary before the token: only the markers are stripped.
        assert substitute_file_name("prefix__APP_NAME__", context) == "prefixAPP_NAME"

    @pytest.mark.unit
    def test_empty_marker_pair_removed(self, context):
        assert substitute_file_name("config____.json", context) == "config.json"

    @pytest.mark.unit
    def test_non_callable_entry_treated_as_missing(self):
        assert substitute_file_name("__APP_NAME__.js", {"APP_NAME": "demo"}) == "APP_NAME.js"

    @pytest.mark.unit
    def test_producer_called_per_occurrence(self):
        calls = []

        def producer():
            calls.append(1)
            return "x"

        assert substitute_file_name("__A__.__A__", {"A": producer}) == "x.x"
        assert len(calls) == 2


# ---------------------------------------------------------------------------
# substitute_content
# ---------------------------------------------------------------------------


class TestSubstituteContent:
    @pytest.mark.unit
    def test_known_token_replaced(self, context):
        source = 'module.exports = { name: "<<<APP_NAME>>>" };'
        assert substitute_content(source, context) == 'module.exports = { name: "demo" };'

    @pytest.mark.unit
    def test_unknown_token_removed(self, context):
        assert substitute_content("a<<<MISSING>>>b", context) == "ab"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        [
            "",
            "plain text",
            "<<lowercase>>> and <<<lower>>>",
            "<< <APP_NAME> >>",
            "__APP_NAME__",
        ],
    )
    def test_untokenized_input_unchanged(self, context, source):
        assert substitute_content(source, context) == source

    @pytest.mark.unit
    def test_output_not_rescanned(self):
        context = {"OUTER": lambda: "<<<INNER>>>", "INNER": lambda: "inner"}
        assert substitute_content("<<<OUTER>>>", context) == "<<<INNER>>>"

    @pytest.mark.unit
    def test_hyphenated_token_name(self):
        assert substitute_content("<<<MY-TOKEN>>>", {"MY-TOKEN": lambda: "ok"}) == "ok"

    @pytest.mark.unit
    def test_non_string_producer_result_stringified(self):
        assert substitute_content("port=<<<PORT>>>", {"PORT": lambda: 8000}) == "port=8000"


# ---------------------------------------------------------------------------
# load_template_helpers
# ---------------------------------------------------------------------------


class TestLoadTemplateHelpers:
    @pytest.mark.unit
    def test_missing_file_returns_empty(self, tmp_path: Path):
        assert load_template_helpers(tmp_path) == {}

    @pytest.mark.unit
    def test_loads_uppercase_callables_and_removes_file(self, tmp_path: Path):
        helpers_path = tmp_path / HELPERS_FILE_NAME
        helpers_path.write_text(
            "AUTHOR = lambda: 'Jane'\n"
            "def LICENSE_YEAR():\n"
            "    return '2026'\n"
            "def lowercase():\n"
            "    return 'ignored'\n"
            "CONSTANT = 'not callable'\n",
            encoding="utf-8",
        )

        helpers = load_template_helpers(tmp_path)

        assert sorted(helpers) == ["AUTHOR", "LICENSE_YEAR"]
        assert helpers["AUTHOR"]() == "Jane"
        assert not helpers_path.exists()

    @pytest.mark.unit
    def test_broken_helpers_warn_and_return_empty(self, tmp_path: Path, capsys):
        helpers_path = tmp_path / HELPERS_FILE_NAME
        helpers_path.write_text("raise RuntimeError('broken helpers')\n", encoding="utf-8")

        assert load_template_helpers(tmp_path) == {}
        assert "Unable to import template helpers" in capsys.readouterr().out
        assert helpers_path.exists()


# ---------------------------------------------------------------------------
# build_token_context
# ---------------------------------------------------------------------------


class TestBuildTokenContext:
    @pytest.mark.unit
    def test_builtin_tokens(self, tmp_path: Path):
        context = build_token_context(tmp_path, "My Cool App!")
        assert context["APP_NAME"]() == "my-cool-app"
        assert context["APP_DISPLAY_NAME"]() == "My Cool App"

    @pytest.mark.unit
    def test_random_sha256_fresh_each_call(self, tmp_path: Path):
        context = build_token_context(tmp_path, "demo")
        first = context["RANDOM_SHA256"]()
        second = context["RANDOM_SHA256"]()
        assert len(first) == 64
        assert first != second

    @pytest.mark.unit
    def test_builtins_override_helpers(self, tmp_path: Path):
        (tmp_path / HELPERS_FILE_NAME).write_text(
            "APP_NAME = lambda: 'from-helper'\nEXTRA = lambda: 'extra'\n",
            encoding="utf-8",
        )
        context = build_token_context(tmp_path, "demo")
        assert context["APP_NAME"]() == "demo"
        assert context["EXTRA"]() == "extra"

    @pytest.mark.unit
    def test_context_is_read_only(self, tmp_path: Path):
        context = build_token_context(tmp_path, "demo")
        with pytest.raises(TypeError):
            context["APP_NAME"] = lambda: "other"  # type: ignore[index]
