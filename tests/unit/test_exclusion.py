"""
Unit tests for ExclusionRules in hashkeep.scanning.exclusion.
"""

from pathlib import Path

import pytest

from hashkeep.errors import ConfigError
from hashkeep.scanning import ExclusionRules


@pytest.mark.unit
class TestExclusionRulesParsing:
    """Tests for building rules from blacklist lines."""

    def test_regex_lines_are_searched(self):
        """A /regex/ line matches anywhere in the path."""
        rules = ExclusionRules.from_lines(["/\\.tmp$/"])

        assert rules("/data/cache.tmp")
        assert not rules("/data/cache.tmp.keep")

    def test_literal_lines_match_exactly(self):
        """A plain line only matches the identical path."""
        rules = ExclusionRules.from_lines(["/data/skip.me"])

        assert rules("/data/skip.me")
        assert not rules("/data/skip.me.too")
        assert not rules("/other/data/skip.me")

    def test_blank_lines_and_whitespace_are_ignored(self):
        rules = ExclusionRules.from_lines(["", "   ", "  /data/x  ", "\t"])

        assert len(rules) == 1
        assert rules("/data/x")

    def test_single_slash_is_literal(self):
        """A lone "/" is a literal path, not an empty regex."""
        rules = ExclusionRules.from_lines(["/"])

        assert rules("/")
        assert not rules("/data/file.txt")

    def test_invalid_regex_raises_config_error(self):
        """A malformed pattern fails loading and names the line."""
        with pytest.raises(ConfigError, match="line 2"):
            ExclusionRules.from_lines(["/ok/", "/[unclosed/"])

    def test_empty_rules_exclude_nothing(self):
        rules = ExclusionRules.empty()

        assert len(rules) == 0
        assert not rules("/anything")


@pytest.mark.unit
class TestExclusionRulesFromFile:
    """Tests for loading rules from a file."""

    def test_from_file(self, temp_dir: Path):
        blacklist = temp_dir / "blacklist.txt"
        blacklist.write_text("/node_modules/\n/data/secret.txt\n")

        rules = ExclusionRules.from_file(blacklist)

        assert len(rules) == 2
        assert rules("/src/node_modules/pkg/index.js")
        assert rules("/data/secret.txt")

    def test_none_gives_empty_rules(self):
        assert len(ExclusionRules.from_file(None)) == 0

    def test_missing_file_raises_config_error(self, temp_dir: Path):
        with pytest.raises(ConfigError, match="Cannot read blacklist"):
            ExclusionRules.from_file(temp_dir / "missing.txt")
