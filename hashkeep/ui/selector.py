"""Selection capability used by the interactive operations.

Operations that need a human decision depend only on the Selector protocol:
pick one option, pick any subset of options, or answer yes/no. RichSelector
implements it with Rich prompts; tests and scripts can supply any object with
the same three methods.

Example:
    from hashkeep.ui import RichSelector

    selector = RichSelector()
    chosen = selector.select_many("Select files to delete", ["a.txt", "b.txt"])
"""

from typing import List, Optional, Protocol, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from .catalog_tui import printable


class Selector(Protocol):
    """Decision-maker consulted by the interactive operations."""

    def select_one(self, prompt: str, options: Sequence[str]) -> str:
        ...

    def select_many(self, prompt: str, options: Sequence[str]) -> List[str]:
        ...

    def confirm(self, prompt: str, default: bool = False) -> bool:
        ...


class RichSelector:
    """Rich-based implementation of the Selector protocol.

    Options are listed with 1-based numbers; answers are typed as numbers.

    Args:
        console: Optional Rich Console for output. Pass a custom Console for
            testing (e.g., with StringIO file for output capture).
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def select_one(self, prompt: str, options: Sequence[str]) -> str:
        """Prompt the user to pick exactly one option.

        Raises:
            ValueError: If ``options`` is empty.
        """
        if not options:
            raise ValueError("no options provided")

        self._list_options(prompt, options)
        choices = [str(i) for i in range(1, len(options) + 1)]
        selection = Prompt.ask(
            "Choice",
            choices=choices,
            default="1",
            console=self.console,
        )
        return options[int(selection) - 1]

    def select_many(self, prompt: str, options: Sequence[str]) -> List[str]:
        """Prompt the user to pick any number of options.

        Accepts space- or comma-separated numbers, ``all``, or an empty
        answer for none. Invalid answers are re-asked.

        Raises:
            ValueError: If ``options`` is empty.
        """
        if not options:
            raise ValueError("no options provided")

        self._list_options(prompt, options)
        option_count = len(options)

        while True:
            answer = Prompt.ask(
                "Numbers (e.g. '1 3'), 'all', or blank for none",
                default="",
                show_default=False,
                console=self.console,
            )
            indices = self._parse_indices(answer, option_count)
            if indices is not None:
                return [options[i] for i in indices]
            self.console.print(
                f"[red]Please enter numbers between 1 and {option_count}, "
                f"'all', or nothing.[/red]"
            )

    def confirm(self, prompt: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        return Confirm.ask(prompt, default=default, console=self.console)

    def _list_options(self, prompt: str, options: Sequence[str]) -> None:
        self.console.print(f"\n[bold]{escape(prompt)}[/bold]")
        for idx, option in enumerate(options, start=1):
            self.console.print(f"  [cyan]{idx:>3}[/cyan]. {printable(option)}", highlight=False)

    @staticmethod
    def _parse_indices(answer: str, option_count: int) -> Optional[List[int]]:
        """Turn an answer into 0-based indices, or None if it is invalid."""
        answer = answer.strip().lower()
        if not answer:
            return []
        if answer == "all":
            return list(range(option_count))

        indices: List[int] = []
        for part in answer.replace(",", " ").split():
            try:
                idx = int(part)
            except ValueError:
                return None
            if idx < 1 or idx > option_count:
                return None
            if idx - 1 not in indices:
                indices.append(idx - 1)
        return indices
