"""
Coding Layer

RESPONSIBILITY: Grounded-theory coding of sentence spans
- Open coding: spans -> theme Codes
- Axial coding: themes -> variable Codes + Containment

MUST NOT: Infer causality. Containment is hierarchical only.
"""

from .open_coding import tokenize, extract_themes
from .axial_coding import canonical_name, aggregate_themes_to_variables

__all__ = [
    'tokenize',
    'extract_themes',
    'canonical_name',
    'aggregate_themes_to_variables',
]
