"""
Export Layer

Downstream collaborators that consume a finished Graph and Loop set.
The pipeline only calls an exporter when an export destination was
requested.
"""

from .base import Exporter
from .files import FileExporter, atomic_write
from .mermaid import render_mermaid, sanitize_id

__all__ = [
    'Exporter',
    'FileExporter',
    'atomic_write',
    'render_mermaid',
    'sanitize_id',
]
