"""Orchestration package for hashkeep.

- CatalogOrchestrator: Runs each CLI command against a workspace.
- RunLogger: Writes the optional structured run log.
"""

from hashkeep.orchestration.catalog_orchestrator import CatalogOrchestrator
from hashkeep.orchestration.run_logger import RunLogger

__all__ = ["CatalogOrchestrator", "RunLogger"]
