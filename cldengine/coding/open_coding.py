"""
Open Coding (Theme Extraction)
==============================

Scans sentence spans for short candidate phrases ("themes").

ALGORITHM:
==========
For window sizes from theme_max_words down to 1, slide over the
sentence tokens. A candidate is rejected when it is shorter than
theme_min_length, contains a stop-word token, contains any cue phrase
as a substring, or is purely numeric. Survivors are canonicalized via
theme_to_variable_map and keyed by `theme:<label>`; repeat occurrences
append evidence instead of creating new codes.

Larger windows go first so longer, more specific phrases are seen
before their sub-phrases.
"""

from __future__ import annotations
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple
import re

from ..config import CausalConfig, DEFAULT_CONFIG
from ..contracts.audit import AuditEventType
from ..contracts.base import CodeType
from ..contracts.model import Code, Span
from ..observability import LogCollector


_NON_TOKEN = re.compile(r'[^a-z0-9\s-]')
_NUMERIC = re.compile(r'\d+')


def tokenize(text: str) -> List[str]:
    """Lowercase, strip non-alphanumerics except hyphens, split on whitespace."""
    return _NON_TOKEN.sub(' ', text.lower()).split()


def reject_reason(
    phrase: str,
    words: Sequence[str],
    cfg: CausalConfig,
    stopwords: FrozenSet[str],
    cues: Tuple[str, ...]
) -> Optional[str]:
    """Return why a candidate phrase is not a theme, or None if it is."""
    if len(phrase) < cfg.theme_min_length:
        return "too_short"
    if any(w in stopwords for w in words):
        return "stopword"
    if any(c in phrase for c in cues):
        return "cue_phrase"
    if _NUMERIC.fullmatch(phrase):
        return "numeric"
    return None


def extract_themes(
    spans: Sequence[Span],
    cfg: CausalConfig = DEFAULT_CONFIG,
    collector: Optional[LogCollector] = None
) -> Tuple[Code, ...]:
    """Produce theme Codes with accumulated evidence spans."""
    stopwords = cfg.stopword_set
    cues = cfg.cue_lexicon.all_cues()

    labels: Dict[str, str] = {}          # theme id -> label
    evidence: Dict[str, List[Span]] = {}  # theme id -> spans, append-only

    for span in spans:
        tokens = tokenize(span.text)
        for width in range(cfg.theme_max_words, 0, -1):
            for i in range(0, len(tokens) - width + 1):
                words = tokens[i:i + width]
                phrase = ' '.join(words)
                if reject_reason(phrase, words, cfg, stopwords, cues):
                    continue

                label = cfg.theme_to_variable_map.get(phrase) or phrase
                theme_id = Code.theme_id(label)
                if theme_id in evidence:
                    evidence[theme_id].append(span)
                else:
                    labels[theme_id] = label
                    evidence[theme_id] = [span]

    themes = tuple(
        Code(
            id=theme_id,
            label=label,
            type=CodeType.THEME,
            group=cfg.group_for(label),
            evidence=tuple(evidence[theme_id]),
        )
        for theme_id, label in labels.items()
    )

    if collector:
        collector.log(
            AuditEventType.STAGE_COMPLETED,
            action="themes_extracted",
            metadata={'span_count': len(spans), 'theme_count': len(themes)},
        )
    return themes
