"""Pytest fixtures for hashkeep tests."""

import io
import os
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence

import pytest
from rich.console import Console

from hashkeep.catalog import SqliteCatalogStore
from hashkeep.config import Settings, load_settings
from hashkeep.ui import CatalogTUI


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "integration: end-to-end tests touching the file system")


class ScriptedSelector:
    """Selector stub answering prompts from prepared scripts.

    ``select_many`` answers are callables receiving the offered options, or
    lists of 0-based indices into them. When the script runs out, nothing is
    selected. Every prompt is recorded in ``prompts``.
    """

    def __init__(
        self,
        many: Optional[List] = None,
        confirm_answers: Optional[List[bool]] = None,
        one: Optional[List[int]] = None,
    ) -> None:
        self._many = list(many or [])
        self._confirm = list(confirm_answers or [])
        self._one = list(one or [])
        self.prompts: List[str] = []
        self.offered: List[List[str]] = []

    def select_one(self, prompt: str, options: Sequence[str]) -> str:
        self.prompts.append(prompt)
        index = self._one.pop(0) if self._one else 0
        return options[index]

    def select_many(self, prompt: str, options: Sequence[str]) -> List[str]:
        self.prompts.append(prompt)
        self.offered.append(list(options))
        if not self._many:
            return []
        answer = self._many.pop(0)
        if callable(answer):
            return list(answer(list(options)))
        return [options[i] for i in answer]

    def confirm(self, prompt: str, default: bool = False) -> bool:
        self.prompts.append(prompt)
        return self._confirm.pop(0) if self._confirm else default


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for isolated test environments.

    The path is canonical so it compares equal to the paths hashkeep stores.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Workspace settings rooted in a private directory."""
    return load_settings(temp_dir / "workspace")


@pytest.fixture
def store(temp_dir: Path) -> Generator[SqliteCatalogStore, None, None]:
    """Open an empty SQLite catalog, closed after the test."""
    catalog = SqliteCatalogStore(temp_dir / "catalog.db")
    try:
        yield catalog
    finally:
        catalog.close()


@pytest.fixture
def tui_with_output() -> tuple:
    """Create a CatalogTUI with captured output.

    Returns:
        Tuple of (CatalogTUI instance, StringIO for reading output).
    """
    output = io.StringIO()
    console = Console(file=output, force_terminal=False, width=200)
    return CatalogTUI(console=console), output


@pytest.fixture
def data_tree(temp_dir: Path) -> Path:
    """Create a small tree with nested folders and one duplicate pair.

    Creates:
        data/
        ├── a.txt          "alpha"
        ├── b.txt          "bravo"
        └── sub/
            ├── c.txt      "charlie"
            └── a_copy.txt "alpha"

    Returns:
        Path to the ``data`` directory.
    """
    root = temp_dir / "data"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("alpha")
    (root / "b.txt").write_text("bravo")
    (root / "sub" / "c.txt").write_text("charlie")
    (root / "sub" / "a_copy.txt").write_text("alpha")
    return root


def _write_files(base: Path, files: Dict[str, bytes]) -> List[Path]:
    """Write ``{relative path: content}`` under ``base`` and return the paths."""
    paths = []
    for relative, content in files.items():
        path = base / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        paths.append(path)
    return paths


@pytest.fixture
def make_files():
    """Return a helper writing ``{relative path: content}`` under a base directory."""
    return _write_files


@pytest.fixture
def scripted_selector() -> type:
    """Return the ScriptedSelector class for building stubs in tests."""
    return ScriptedSelector


@pytest.fixture
def undecodable_tree(temp_dir: Path) -> Path:
    """Create two identical files, one whose name is not valid UTF-8.

    Creates:
        mixed/
        ├── good.txt       "same content"
        └── bad\\xff.txt    "same content"

    Skips where the file system refuses such names.
    """
    root = temp_dir / "mixed"
    root.mkdir()
    (root / "good.txt").write_bytes(b"same content")
    try:
        with open(os.path.join(os.fsencode(str(root)), b"bad\xff.txt"), "wb") as f:
            f.write(b"same content")
    except (OSError, UnicodeError):
        pytest.skip("file system rejects names that are not valid UTF-8")
    return root
