"""
Axial Coding (Aggregation)
==========================

Maps themes onto canonical variables and records containment.

Themes whose canonical name is not allow-listed are dropped.
Containment is hierarchical only and never appears as a causal edge.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import CausalConfig, DEFAULT_CONFIG
from ..contracts.audit import AuditEventType
from ..contracts.base import CodeType, Group
from ..contracts.model import Code, Containment, Span
from ..observability import LogCollector


def canonical_name(theme: Code, cfg: CausalConfig = DEFAULT_CONFIG) -> str:
    return cfg.theme_to_variable_map.get(theme.label) or theme.label


def aggregate_themes_to_variables(
    themes: Sequence[Code],
    cfg: CausalConfig = DEFAULT_CONFIG,
    collector: Optional[LogCollector] = None
) -> Tuple[Tuple[Code, ...], Tuple[Containment, ...]]:
    """
    Produce (variables, containment).

    The first contributing theme fixes a variable's group; evidence
    accumulates from every contributing theme in theme order.
    """
    allowed = cfg.allowed_variables()
    labels: Dict[str, str] = {}
    groups: Dict[str, Group] = {}
    evidence: Dict[str, List[Span]] = {}
    containment: List[Containment] = []

    for theme in themes:
        canonical = canonical_name(theme, cfg)
        if canonical not in allowed:
            if collector:
                collector.log(
                    AuditEventType.ITEM_DROPPED,
                    action="theme_not_allow_listed",
                    entity_id=theme.id,
                    metadata={'canonical': canonical},
                )
            continue

        var_id = Code.variable_id(canonical)
        if var_id not in evidence:
            labels[var_id] = canonical
            groups[var_id] = theme.group
            evidence[var_id] = list(theme.evidence)
        else:
            evidence[var_id].extend(theme.evidence)
        containment.append(Containment(parent_code_id=var_id, child_code_id=theme.id))

    variables = tuple(
        Code(
            id=var_id,
            label=labels[var_id],
            type=CodeType.VARIABLE,
            group=groups[var_id],
            evidence=tuple(spans),
        )
        for var_id, spans in evidence.items()
    )

    if collector:
        collector.log(
            AuditEventType.STAGE_COMPLETED,
            action="variables_aggregated",
            metadata={
                'theme_count': len(themes),
                'variable_count': len(variables),
                'containment_count': len(containment),
            },
        )
    return variables, tuple(containment)
