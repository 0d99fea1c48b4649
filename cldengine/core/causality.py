"""
Causality Extractor
===================

Scans each sentence for cue phrases and emits directed, polarity-signed,
confidence-scored edges between the variables it mentions.

PER SENTENCE:
=============
1. Polarity: first negative cue, else positive, else generic ('+').
   No cue means no edges.
2. Directional path: split at the earliest cue; take the last variable
   mentioned on the left as `from` and the first on the right as `to`.
3. Pairwise fallback: every ordered pair (i before j) of mentioned
   variables, capped at confidence.max_per_sentence_edges.
4. Confidence: base + min(1, cue_hits * cue_weight) + polarity bonus,
   clamped to [0, 1].

Variable mentions are whole-word, case-insensitive matches of a
variable's label or any configured synonym. Mention order is position
in the text.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Sequence, Tuple
import re

from ..config import CausalConfig, DEFAULT_CONFIG
from ..contracts.audit import AuditEventType
from ..contracts.base import Polarity
from ..contracts.model import CausalEdge, Code, Span, clamp_unit
from ..observability import LogCollector


# Cue families for which the performance/underperformance orientation applies
_REDUCING_CUES = ('reduces', 'lowers', 'diminish')


@dataclass(frozen=True)
class CueMatch:
    """Earliest cue occurrence in a sentence."""
    cue: str
    position: int


class SynonymIndex:
    """
    Term -> variable id index with precompiled whole-word matchers.

    A term shared by several variables resolves to the last variable
    that declares it.
    """

    def __init__(self, variables: Sequence[Code], cfg: CausalConfig = DEFAULT_CONFIG):
        index: Dict[str, str] = {}
        for variable in variables:
            terms = (variable.label,) + tuple(cfg.variable_synonyms.get(variable.label, ()))
            for term in terms:
                key = term.lower().strip()
                if key:
                    index[key] = variable.id
        self._index = index
        self._patterns: List[Tuple[Pattern, str]] = [
            (re.compile(r'(?<![a-z0-9])' + re.escape(term) + r'(?![a-z0-9])'), var_id)
            for term, var_id in index.items()
        ]
        self._order = {v.id: i for i, v in enumerate(variables)}

    def __len__(self) -> int:
        return len(self._index)

    def mentioned(self, text: str) -> List[str]:
        """Variable ids mentioned in `text`, ordered by first occurrence."""
        lowered = text.lower()
        first_seen: Dict[str, int] = {}
        for pattern, var_id in self._patterns:
            match = pattern.search(lowered)
            if match is None:
                continue
            if var_id not in first_seen or match.start() < first_seen[var_id]:
                first_seen[var_id] = match.start()
        return sorted(first_seen, key=lambda v: (first_seen[v], self._order.get(v, 0)))


# =============================================================================
# SENTENCE-LEVEL HEURISTICS
# =============================================================================

def polarity_from_sentence(sentence: str, cfg: CausalConfig = DEFAULT_CONFIG) -> Optional[Polarity]:
    """Negative cues win over positive; generic cues read as positive."""
    s = sentence.lower()
    lexicon = cfg.cue_lexicon
    if any(cue in s for cue in lexicon.negative):
        return Polarity.NEGATIVE
    if any(cue in s for cue in lexicon.positive):
        return Polarity.POSITIVE
    if any(cue in s for cue in lexicon.generic):
        return Polarity.POSITIVE
    return None


def earliest_cue(sentence: str, cfg: CausalConfig = DEFAULT_CONFIG) -> Optional[CueMatch]:
    """First-occurring cue; ties go to the cue listed first."""
    s = sentence.lower()
    best: Optional[CueMatch] = None
    for cue in cfg.cue_lexicon.all_cues():
        pos = s.find(cue)
        if pos != -1 and (best is None or pos < best.position):
            best = CueMatch(cue=cue, position=pos)
    return best


def count_cue_hits(sentence: str, cfg: CausalConfig = DEFAULT_CONFIG) -> int:
    """Number of distinct configured cues occurring in the sentence."""
    s = sentence.lower()
    return sum(1 for cue in set(cfg.cue_lexicon.all_cues()) if cue in s)


def estimate_confidence(
    sentence: str,
    polarity: Polarity,
    cfg: CausalConfig = DEFAULT_CONFIG
) -> float:
    weights = cfg.confidence
    score = weights.base
    score += min(1.0, count_cue_hits(sentence, cfg) * weights.cue_weight)
    if polarity is Polarity.POSITIVE:
        score += weights.positive_bonus
    else:
        score += weights.negative_bonus
    return clamp_unit(score)


def _orient_performance_balancing(
    cue: str,
    left_vars: Sequence[str],
    right_vars: Sequence[str],
    from_id: str,
    to_id: str
) -> Tuple[str, str]:
    """
    Narrow special case: "performance reduces underperformance" keeps
    the performance -> underperformance orientation. Applies only to the
    reduces/lowers/diminish cue family.
    """
    if not any(family in cue for family in _REDUCING_CUES):
        return from_id, to_id
    if any('underperformance' in v for v in right_vars) and any('performance' in v for v in left_vars):
        from_id = next((v for v in left_vars if 'performance' in v), from_id)
        to_id = next((v for v in right_vars if 'underperformance' in v), to_id)
    return from_id, to_id


# =============================================================================
# EXTRACTION
# =============================================================================

def directional_edges(
    span: Span,
    polarity: Polarity,
    index: SynonymIndex,
    cfg: CausalConfig = DEFAULT_CONFIG
) -> List[CausalEdge]:
    """Closest-to-cue edge across the earliest cue, or nothing."""
    sentence = span.text
    match = earliest_cue(sentence, cfg)
    if match is None:
        return []

    lowered = sentence.lower()
    left_vars = index.mentioned(lowered[:match.position])
    right_vars = index.mentioned(lowered[match.position + len(match.cue):])
    if not left_vars or not right_vars:
        return []

    from_id, to_id = _orient_performance_balancing(
        match.cue, left_vars, right_vars, left_vars[-1], right_vars[0]
    )
    return [CausalEdge(
        from_variable_id=from_id,
        to_variable_id=to_id,
        polarity=polarity,
        confidence=estimate_confidence(sentence, polarity, cfg),
        evidence=(span,),
    )]


def pairwise_edges(
    span: Span,
    polarity: Polarity,
    index: SynonymIndex,
    cfg: CausalConfig = DEFAULT_CONFIG
) -> List[CausalEdge]:
    """Edges i -> j for mentioned variables i before j, bounded per sentence."""
    sentence = span.text
    mentioned = index.mentioned(sentence)
    if len(mentioned) < 2:
        return []

    max_edges = cfg.confidence.max_per_sentence_edges
    confidence = estimate_confidence(sentence, polarity, cfg)
    edges: List[CausalEdge] = []
    for i, from_id in enumerate(mentioned):
        for to_id in mentioned[i + 1:]:
            if len(edges) >= max_edges:
                return edges
            edges.append(CausalEdge(
                from_variable_id=from_id,
                to_variable_id=to_id,
                polarity=polarity,
                confidence=confidence,
                evidence=(span,),
            ))
    return edges


def extract_causal_edges(
    spans: Sequence[Span],
    variables: Sequence[Code],
    cfg: CausalConfig = DEFAULT_CONFIG,
    collector: Optional[LogCollector] = None
) -> Tuple[CausalEdge, ...]:
    """Raw (unconsolidated) edges for every cue-bearing sentence."""
    index = SynonymIndex(variables, cfg)
    edges: List[CausalEdge] = []

    for span in spans:
        polarity = polarity_from_sentence(span.text, cfg)
        if polarity is None:
            continue

        found = directional_edges(span, polarity, index, cfg)
        if not found:
            found = pairwise_edges(span, polarity, index, cfg)
        if not found and collector:
            collector.log(
                AuditEventType.ITEM_DROPPED,
                action="cue_without_variable_pair",
                entity_id=f"{span.doc_id}:{span.start}",
                metadata={'polarity': polarity.value},
            )
        edges.extend(found)

    if collector:
        collector.log(
            AuditEventType.STAGE_COMPLETED,
            action="edges_extracted",
            metadata={'span_count': len(spans), 'raw_edge_count': len(edges)},
        )
    return tuple(edges)
