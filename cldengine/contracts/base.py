"""
Base Contracts and Shared Types
===============================

Foundational enumerations and error types used across all layers.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- No behavior, no side effects, no dependencies on other layers
- Construction errors are exceptions; empty results are data
"""

from __future__ import annotations
from enum import Enum


# =============================================================================
# ENUMERATIONS
# =============================================================================

class Polarity(Enum):
    """Sign of a causal edge. '-' stands for the inverting (−) polarity."""
    POSITIVE = "+"
    NEGATIVE = "-"

    @property
    def sign(self) -> int:
        return 1 if self is Polarity.POSITIVE else -1


class CodeType(Enum):
    """Kind of qualitative code."""
    THEME = "theme"
    VARIABLE = "variable"


class Group(Enum):
    """Stakeholder group a code is attributed to."""
    POLICY = "policy"
    INDUSTRY = "industry"
    USERS = "users"
    LOCAL_AUTHORITY = "local_authority"
    OTHER = "other"


class LoopType(Enum):
    """Feedback loop classification."""
    REINFORCING = "reinforcing"
    BALANCING = "balancing"


class Relation(Enum):
    """Hierarchical (non-causal) relation between codes."""
    CONTAINS = "contains"


# =============================================================================
# ERRORS (raised at construction time, never inside a stage)
# =============================================================================

class CldEngineError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(CldEngineError, ValueError):
    """Configuration could not be built or merged."""


class InputValidationError(CldEngineError, ValueError):
    """Input documents violate the input contract."""


class NoCausalRelationshipsError(CldEngineError):
    """
    Caller-level failure: the pipeline produced no usable diagram.

    The pipeline never raises this itself. Callers that need a diagram
    opt in via ``require_causal_structure``.
    """

    def __init__(self, variable_count: int, edge_count: int):
        self.variable_count = variable_count
        self.edge_count = edge_count
        super().__init__(
            f"No causal relationships found "
            f"(variables={variable_count}, edges={edge_count})"
        )


class ExportError(CldEngineError):
    """An export collaborator failed to write its artifacts."""
