"""Terminal UI for hashkeep: Rich output and interactive selection."""

from .catalog_tui import CatalogTUI
from .selector import RichSelector, Selector

__all__ = ["CatalogTUI", "RichSelector", "Selector"]
