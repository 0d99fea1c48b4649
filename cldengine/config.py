"""
Causal Pipeline Configuration
=============================

Immutable configuration threaded through every stage of a run.

GUARANTEES:
- A CausalConfig is never mutated; merge_config returns a new value
- Regex patterns, groups and numeric ranges are validated on construction
- Nested mappings merge key by key, lists and scalars replace

DEFAULT_CONFIG is the process-wide default. Overrides come from callers
as plain mappings (for example loaded from JSON with
load_config_overrides) and are merged over it.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Pattern, Tuple, Union
import json
import re

from .contracts.base import ConfigurationError, Group


# =============================================================================
# COMPONENTS
# =============================================================================

@dataclass(frozen=True)
class CueLexicon:
    """Causal cue phrases by polarity. Stored lower-cased."""
    positive: Tuple[str, ...]
    negative: Tuple[str, ...]
    generic: Tuple[str, ...]

    def __post_init__(self):
        for name in ('positive', 'negative', 'generic'):
            phrases = _string_tuple(f"cue_lexicon.{name}", getattr(self, name))
            cleaned = tuple(p.lower() for p in phrases if p.strip())
            object.__setattr__(self, name, cleaned)

    def all_cues(self) -> Tuple[str, ...]:
        """Positive, negative, then generic cues, in configured order."""
        return self.positive + self.negative + self.generic

    def to_dict(self) -> dict:
        return {
            'positive': list(self.positive),
            'negative': list(self.negative),
            'generic': list(self.generic),
        }


@dataclass(frozen=True)
class GroupRule:
    """Case-insensitive regex pattern assigning a stakeholder group."""
    pattern: str
    group: Group
    regex: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.group, Group):
            try:
                object.__setattr__(self, 'group', Group(self.group))
            except ValueError:
                raise ConfigurationError(f"Unknown group in group rule: {self.group!r}")
        try:
            compiled = re.compile(self.pattern, re.IGNORECASE)
        except (re.error, TypeError) as e:
            raise ConfigurationError(f"Invalid group rule pattern {self.pattern!r}: {e}")
        object.__setattr__(self, 'regex', compiled)

    def matches(self, label: str) -> bool:
        return self.regex.search(label) is not None

    def to_dict(self) -> dict:
        return {'pattern': self.pattern, 'group': self.group.value}


@dataclass(frozen=True)
class ConfidenceWeights:
    """Parameters of the edge confidence heuristic."""
    base: float = 0.4
    positive_bonus: float = 0.15
    negative_bonus: float = 0.15
    cue_weight: float = 0.35
    max_per_sentence_edges: int = 3

    def __post_init__(self):
        for name in ('base', 'positive_bonus', 'negative_bonus', 'cue_weight'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"confidence.{name} must be a number")
        if isinstance(self.max_per_sentence_edges, bool) or not isinstance(self.max_per_sentence_edges, int):
            raise ConfigurationError("confidence.max_per_sentence_edges must be an integer")
        if self.max_per_sentence_edges < 0:
            raise ConfigurationError("confidence.max_per_sentence_edges must be >= 0")

    def to_dict(self) -> dict:
        return {
            'base': self.base,
            'positive_bonus': self.positive_bonus,
            'negative_bonus': self.negative_bonus,
            'cue_weight': self.cue_weight,
            'max_per_sentence_edges': self.max_per_sentence_edges,
        }


# =============================================================================
# CONFIG
# =============================================================================

@dataclass(frozen=True)
class CausalConfig:
    """
    Complete configuration for one pipeline run.

    Mapping fields are exposed as read-only views.
    """
    cue_lexicon: CueLexicon
    group_rules: Tuple[GroupRule, ...]
    theme_stopwords: Tuple[str, ...]
    theme_min_length: int
    theme_max_words: int
    theme_to_variable_map: Mapping[str, str]
    variable_synonyms: Mapping[str, Tuple[str, ...]]
    canonical_variables: Tuple[str, ...]
    prune_threshold: float
    confidence: ConfidenceWeights
    loop_max_depth: int = 6

    def __post_init__(self):
        object.__setattr__(self, 'group_rules', tuple(self.group_rules))
        stopwords = _string_tuple('theme_stopwords', self.theme_stopwords)
        object.__setattr__(self, 'theme_stopwords', tuple(w.lower() for w in stopwords))
        object.__setattr__(
            self, 'canonical_variables',
            _string_tuple('canonical_variables', self.canonical_variables)
        )
        mapping = {}
        for theme, variable in self.theme_to_variable_map.items():
            if not isinstance(theme, str) or not isinstance(variable, str):
                raise ConfigurationError(
                    f"theme_to_variable_map entries must map strings to strings, "
                    f"got {theme!r}: {variable!r}"
                )
            mapping[theme] = variable
        object.__setattr__(self, 'theme_to_variable_map', MappingProxyType(mapping))
        synonyms = {}
        for canonical, terms in self.variable_synonyms.items():
            if not isinstance(canonical, str):
                raise ConfigurationError(f"variable_synonyms keys must be strings, got {canonical!r}")
            synonyms[canonical] = _string_tuple(f"variable_synonyms[{canonical!r}]", terms)
        object.__setattr__(self, 'variable_synonyms', MappingProxyType(synonyms))

        _require_int('theme_min_length', self.theme_min_length, minimum=0)
        _require_int('theme_max_words', self.theme_max_words, minimum=1)
        _require_int('loop_max_depth', self.loop_max_depth, minimum=1)
        if isinstance(self.prune_threshold, bool) or not isinstance(self.prune_threshold, (int, float)):
            raise ConfigurationError("prune_threshold must be a number")
        if not 0.0 <= self.prune_threshold <= 1.0:
            raise ConfigurationError(f"prune_threshold must be in [0, 1], got {self.prune_threshold}")

    @property
    def stopword_set(self) -> FrozenSet[str]:
        return frozenset(self.theme_stopwords)

    def allowed_variables(self) -> FrozenSet[str]:
        """
        Axial coding allow-list: synonym keys, mapped values and the
        fixed domain canonicals.
        """
        return frozenset(self.variable_synonyms) \
            | frozenset(self.theme_to_variable_map.values()) \
            | frozenset(self.canonical_variables)

    def group_for(self, label: str) -> Group:
        """First matching group rule wins; default OTHER."""
        for rule in self.group_rules:
            if rule.matches(label):
                return rule.group
        return Group.OTHER

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cue_lexicon': self.cue_lexicon.to_dict(),
            'group_rules': [r.to_dict() for r in self.group_rules],
            'theme_stopwords': list(self.theme_stopwords),
            'theme_min_length': self.theme_min_length,
            'theme_max_words': self.theme_max_words,
            'theme_to_variable_map': dict(self.theme_to_variable_map),
            'variable_synonyms': {k: list(v) for k, v in self.variable_synonyms.items()},
            'canonical_variables': list(self.canonical_variables),
            'prune_threshold': self.prune_threshold,
            'confidence': self.confidence.to_dict(),
            'loop_max_depth': self.loop_max_depth,
        }


def _require_int(name: str, value: Any, minimum: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _string_tuple(name: str, values: Any) -> Tuple[str, ...]:
    """Accept a list of strings; a bare string or None is rejected."""
    if values is None or isinstance(values, (str, Mapping)):
        raise ConfigurationError(f"{name} must be a list of strings")
    try:
        items = tuple(values)
    except TypeError:
        raise ConfigurationError(f"{name} must be a list of strings")
    for item in items:
        if not isinstance(item, str):
            raise ConfigurationError(f"{name} must contain only strings, got {item!r}")
    return items


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_STOPWORDS: Tuple[str, ...] = (
    'the', 'a', 'an', 'and', 'or', 'to', 'of', 'in', 'on', 'for', 'with',
    'by', 'from', 'that', 'this', 'is', 'are', 'was', 'were', 'be', 'as',
    'it', 'at', 'we', 'they', 'you', 'i', 'he', 'she', 'them', 'our',
)

DEFAULT_CONFIG = CausalConfig(
    cue_lexicon=CueLexicon(
        positive=(
            'leads to', 'results in', 'increases', 'raises', 'boosts',
            'amplifies', 'reinforces', 'grows', 'triggers', 'more', 'higher',
        ),
        negative=(
            'reduces', 'decreases', 'lowers', 'diminishes', 'mitigates',
            'limits', 'inhibits', 'constraints', 'less', 'lower',
        ),
        generic=('causes', 'because', 'due to', 'therefore', 'so that', 'so'),
    ),
    group_rules=(
        GroupRule(r'policy|regulation|minister|department', Group.POLICY),
        GroupRule(r'industry|firm|company|engineer|contractor|builder', Group.INDUSTRY),
        GroupRule(r'user|resident|people|public|customer|household', Group.USERS),
        GroupRule(r'local\s*authorit|council|city|municipal', Group.LOCAL_AUTHORITY),
    ),
    theme_stopwords=DEFAULT_STOPWORDS,
    theme_min_length=3,
    theme_max_words=4,
    # underperformance is a separate variable from performance
    theme_to_variable_map={
        'underperformance': 'underperformance',
        'low performance': 'underperformance',
        'resource': 'resource allocation',
        'resources': 'resource allocation',
        'allocation': 'resource allocation',
        'scrapping': 'scrapping',
        'rework': 'rework',
        'design': 'design quality',
        'better design': 'design quality',
    },
    variable_synonyms={
        'performance': ('building performance',),
        'underperformance': ('low performance', 'poor performance'),
        'resource allocation': ('resources', 'resource', 'allocation'),
        'design quality': ('design', 'better design'),
        'rework': ('rework', 're-work'),
        'competence': ('capability', 'capabilities'),
    },
    canonical_variables=(
        'performance', 'underperformance', 'resource allocation',
        'scrapping', 'rework', 'design quality',
    ),
    prune_threshold=0.35,
    confidence=ConfidenceWeights(),
    loop_max_depth=6,
)


# =============================================================================
# MERGING
# =============================================================================

_MAPPING_FIELDS = ('theme_to_variable_map', 'variable_synonyms')
_CONFIG_FIELDS = frozenset(f.name for f in fields(CausalConfig))


def merge_config(
    base: CausalConfig = DEFAULT_CONFIG,
    overrides: Optional[Mapping[str, Any]] = None
) -> CausalConfig:
    """
    Deep-merge a partial override mapping over `base`.

    Nested mappings (cue_lexicon, confidence, theme_to_variable_map,
    variable_synonyms) merge key by key with the override winning.
    Lists and scalars replace. Raises ConfigurationError on unknown keys
    or invalid values.
    """
    if not overrides:
        return base
    if not isinstance(overrides, Mapping):
        raise ConfigurationError("Config overrides must be a mapping")

    unknown = sorted(set(overrides) - _CONFIG_FIELDS)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {name: getattr(base, name) for name in _CONFIG_FIELDS}

    if 'cue_lexicon' in overrides:
        values['cue_lexicon'] = _merge_cue_lexicon(base.cue_lexicon, overrides['cue_lexicon'])
    if 'confidence' in overrides:
        values['confidence'] = _merge_confidence(base.confidence, overrides['confidence'])
    for name in _MAPPING_FIELDS:
        if name in overrides:
            patch = _require_mapping(name, overrides[name])
            merged = dict(getattr(base, name))
            merged.update(patch)
            values[name] = merged
    if 'group_rules' in overrides:
        rules = overrides['group_rules']
        if rules is None or isinstance(rules, (str, Mapping)):
            raise ConfigurationError("group_rules must be a list of rules")
        values['group_rules'] = tuple(_coerce_group_rule(r) for r in rules)
    for name in ('theme_stopwords', 'canonical_variables'):
        if name in overrides:
            values[name] = _string_tuple(name, overrides[name])
    for name in ('theme_min_length', 'theme_max_words', 'prune_threshold', 'loop_max_depth'):
        if overrides.get(name) is not None:
            values[name] = overrides[name]

    return CausalConfig(**values)


def _require_mapping(name: str, value: Any) -> Mapping:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{name} override must be a mapping")
    return value


def _merge_cue_lexicon(base: CueLexicon, patch: Any) -> CueLexicon:
    if isinstance(patch, CueLexicon):
        return patch
    patch = _require_mapping('cue_lexicon', patch)
    unknown = sorted(set(patch) - {'positive', 'negative', 'generic'})
    if unknown:
        raise ConfigurationError(f"Unknown cue_lexicon keys: {', '.join(unknown)}")
    return CueLexicon(
        positive=patch.get('positive', base.positive),
        negative=patch.get('negative', base.negative),
        generic=patch.get('generic', base.generic),
    )


def _merge_confidence(base: ConfidenceWeights, patch: Any) -> ConfidenceWeights:
    if isinstance(patch, ConfidenceWeights):
        return patch
    patch = _require_mapping('confidence', patch)
    current = base.to_dict()
    unknown = sorted(set(patch) - set(current))
    if unknown:
        raise ConfigurationError(f"Unknown confidence keys: {', '.join(unknown)}")
    missing = sorted(k for k, v in patch.items() if v is None)
    if missing:
        raise ConfigurationError(f"confidence values must not be null: {', '.join(missing)}")
    current.update(patch)
    return ConfidenceWeights(**current)


def _coerce_group_rule(rule: Union[GroupRule, Mapping[str, Any]]) -> GroupRule:
    if isinstance(rule, GroupRule):
        return rule
    if not isinstance(rule, Mapping) or 'pattern' not in rule or 'group' not in rule:
        raise ConfigurationError(f"Group rule must have 'pattern' and 'group': {rule!r}")
    return GroupRule(pattern=rule['pattern'], group=rule['group'])


def load_config_overrides(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load an override mapping from a JSON file."""
    path = Path(config_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data
