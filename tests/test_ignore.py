"""
Tests for ignore-rule loading and matching.
"""

import logging

import pytest

from clipfiles.core import ScanOptions, walk
from clipfiles.errors import ConfigError
from clipfiles.ignore import (
    IgnoreLayer,
    IgnoreRuleSet,
    base_rules,
    compile_patterns,
    load_extra_patterns,
    load_ignore_file,
)


def _rels(root, **kw):
    return [e.relative for e in walk(root, options=ScanOptions(**kw))]


class TestIgnoreRuleSet:
    def test_empty_rule_set_ignores_nothing(self):
        assert not IgnoreRuleSet().is_ignored("a.txt")

    def test_layer_only_applies_inside_its_directory(self):
        rules = IgnoreRuleSet().extend(IgnoreLayer("sub", "t", compile_patterns(["*.txt"], "t")))
        assert rules.is_ignored("sub/a.txt")
        assert rules.is_ignored("sub/deeper/a.txt")
        assert not rules.is_ignored("a.txt")
        assert not rules.is_ignored("subway/a.txt")

    def test_deeper_negation_wins(self):
        rules = (
            IgnoreRuleSet()
            .extend(IgnoreLayer("", "root", compile_patterns(["*.txt"], "root")))
            .extend(IgnoreLayer("sub", "sub", compile_patterns(["!keep.txt"], "sub")))
        )
        assert not rules.is_ignored("sub/keep.txt")
        assert rules.is_ignored("sub/other.txt")
        assert rules.is_ignored("keep.txt")

    def test_directory_only_pattern(self):
        rules = IgnoreRuleSet().extend(IgnoreLayer("", "t", compile_patterns(["build/"], "t")))
        assert rules.is_ignored("build", is_dir=True)
        assert not rules.is_ignored("build", is_dir=False)

    def test_extend_with_nothing_returns_same_rules(self):
        rules = base_rules()
        assert rules.extend(None) is rules
        assert rules.extend(IgnoreLayer("", "t", compile_patterns(["# only a comment"], "t"))) is rules

    def test_git_directory_ignored_by_default(self):
        assert base_rules().is_ignored(".git", is_dir=True)


class TestCompilePatterns:
    def test_invalid_line_is_dropped_with_warning(self, caplog):
        caplog.set_level(logging.WARNING, logger="clipfiles")
        spec = compile_patterns(["!", "secret.txt"], "rules")
        assert len(spec.patterns) == 1
        assert "rules:1" in caplog.text

    def test_comments_and_blanks_are_skipped(self):
        spec = compile_patterns(["# comment", "", "*.log"], "rules")
        assert len(spec.patterns) == 1


class TestLoadIgnoreFile:
    def test_missing_file_returns_none(self, tmp_path):
        assert load_ignore_file(tmp_path / ".clipignore", "") is None

    def test_undecodable_file_is_warned_and_ignored(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING, logger="clipfiles")
        path = tmp_path / ".clipignore"
        path.write_bytes(b"\xff\xfe*.txt")
        assert load_ignore_file(path, "") is None
        assert "Could not read ignore file" in caplog.text


class TestLoadExtraPatterns:
    def test_reads_patterns_and_skips_comments(self, tmp_path):
        cfg = tmp_path / "extra.txt"
        cfg.write_text("# drafts\ndrafts/\n\n*.tmp.txt\n", encoding="utf-8")
        spec = load_extra_patterns(cfg)
        assert len(spec.patterns) == 2

    def test_missing_config_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="does not exist"):
            load_extra_patterns(tmp_path / "nope.txt")

    def test_directory_config_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="is not a file"):
            load_extra_patterns(tmp_path)


class TestIgnoreDuringWalk:
    def test_gitignore_prunes_directory(self, tree):
        root = tree({
            ".gitignore": "build/\n",
            "build/out.txt": "x",
            "src/main.py": "print()\n",
        })
        assert _rels(root) == ["src/main.py"]

    def test_no_gitignore_option(self, tree):
        root = tree({".gitignore": "skip.txt\n", "skip.txt": "x"})
        assert _rels(root) == []
        assert _rels(root, use_gitignore=False) == ["skip.txt"]

    def test_nested_ignore_file_scoped_to_subtree(self, tree):
        root = tree({
            "local.txt": "root",
            "sub/.clipignore": "local.txt\n",
            "sub/local.txt": "sub",
            "sub/kept.txt": "kept",
        })
        assert _rels(root) == ["local.txt", "sub/kept.txt"]

    def test_nested_negation_reincludes(self, tree):
        root = tree({
            ".clipignore": "*.txt\n",
            "top.txt": "x",
            "sub/.clipignore": "!keep.txt\n",
            "sub/keep.txt": "x",
            "sub/other.txt": "x",
        })
        assert _rels(root) == ["sub/keep.txt"]

    def test_custom_ignore_file_name(self, tree):
        root = tree({".myignore": "a.txt\n", "a.txt": "x", "b.txt": "y"})
        assert _rels(root) == ["a.txt", "b.txt"]
        assert _rels(root, ignore_file=".myignore") == ["b.txt"]

    def test_custom_ignore_overrides_gitignore(self, tree):
        root = tree({".gitignore": "a.txt\n", ".clipignore": "!a.txt\n", "a.txt": "x"})
        assert _rels(root) == ["a.txt"]

    def test_malformed_line_does_not_abort(self, tree, caplog):
        caplog.set_level(logging.WARNING, logger="clipfiles")
        root = tree({".clipignore": "!\nsecret.txt\n", "secret.txt": "x", "public.txt": "y"})
        assert _rels(root) == ["public.txt"]
        assert "Ignoring invalid pattern" in caplog.text

    def test_extra_spec_applies_at_root(self, tree):
        root = tree({"drafts/a.txt": "x", "b.txt": "y"})
        spec = compile_patterns(["drafts/"], "cfg")
        assert _rels(root, extra_spec=spec) == ["b.txt"]
