"""Exclusion rules loaded from a blacklist file.

The file format is one pattern per line:

- ``/regex/``: a regular expression searched in the full path
- anything else: a literal path, matched by exact equality
- blank lines are ignored

Example:
    >>> rules = ExclusionRules.from_lines(["/\\.tmp$/", "/data/skip.me"])
    >>> rules("/data/cache.tmp")
    True
"""

import re
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Pattern

from hashkeep.errors import ConfigError


class ExclusionRules:
    """Callable predicate telling whether a path is excluded."""

    def __init__(
        self,
        patterns: Optional[List[Pattern[str]]] = None,
        literals: Optional[Iterable[str]] = None,
    ) -> None:
        self._patterns: List[Pattern[str]] = list(patterns or [])
        self._literals: FrozenSet[str] = frozenset(literals or ())

    @classmethod
    def empty(cls) -> "ExclusionRules":
        return cls()

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "ExclusionRules":
        """Parse blacklist lines.

        Raises:
            ConfigError: If a ``/regex/`` line does not compile.
        """
        patterns: List[Pattern[str]] = []
        literals: List[str] = []

        for line_number, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line:
                continue

            if len(line) >= 2 and line.startswith("/") and line.endswith("/"):
                try:
                    patterns.append(re.compile(line[1:-1]))
                except re.error as e:
                    raise ConfigError(
                        f"Invalid exclusion pattern on line {line_number}: {line} ({e})"
                    ) from e
            else:
                literals.append(line)

        return cls(patterns, literals)

    @classmethod
    def from_file(cls, blacklist_file: Optional[Path]) -> "ExclusionRules":
        """Load rules from a blacklist file; ``None`` gives empty rules.

        Raises:
            ConfigError: If the file cannot be read or holds a bad pattern.
        """
        if blacklist_file is None:
            return cls.empty()

        try:
            with open(blacklist_file, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except OSError as e:
            raise ConfigError(f"Cannot read blacklist file {blacklist_file}: {e}") from e

        return cls.from_lines(lines)

    def __call__(self, path: str) -> bool:
        if path in self._literals:
            return True
        return any(pattern.search(path) for pattern in self._patterns)

    def __len__(self) -> int:
        return len(self._patterns) + len(self._literals)
