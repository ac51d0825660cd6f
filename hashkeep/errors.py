"""Exception types raised by hashkeep.

Per-file I/O problems use the builtin ``OSError`` and are normally caught and
reported at file granularity. The classes below cover the failures that mean
something other than "this one file could not be read".
"""


class HashkeepError(Exception):
    """Base class for hashkeep-specific errors."""


class ConfigError(HashkeepError):
    """Invalid configuration detected before any work starts.

    Examples: a malformed exclusion regex, a missing required directory
    argument, or a workspace directory that cannot be created.
    """


class StoreError(HashkeepError):
    """The catalog backend failed; the running operation cannot continue."""


class EntryNotFoundError(HashkeepError, KeyError):
    """A catalog lookup found no row for the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"No catalog entry for: {self.path}"


class MergeAbortedError(HashkeepError, OSError):
    """A copy failed during a merge, so the whole merge was stopped."""
