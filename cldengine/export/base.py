"""
Export Collaborator Interface
=============================

Abstract interface for downstream consumers of a finished run.

BOUNDARY ENFORCEMENT:
- Exporters receive the finalized Graph and Loops; they never feed back
- Failures are explicit (ExportError), never silent
- The core pipeline performs no file I/O of its own
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence

from ..contracts.model import ExportBundle, Graph, Loop


class Exporter(ABC):
    """Writes a graph and its loops somewhere and reports what it wrote."""

    @abstractmethod
    def export(
        self,
        graph: Graph,
        loops: Sequence[Loop],
        base_name: str = "causal"
    ) -> ExportBundle:
        """Export and return the written artifact locations."""
        ...
