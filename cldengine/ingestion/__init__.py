"""
Ingestion Layer

RESPONSIBILITY: Normalize raw text and segment it into sentence spans
ALLOWED INPUTS: {id, text, title?, sourceUri?, metadata?} items
OUTPUTS: Document tuples and a flat, ordered Span tuple

GUARANTEES:
===========
- Never fails on empty or malformed text; it degrades to zero spans
- Span offsets index the NORMALIZED text ("\\r\\n" and "\\r" become "\\n")
- Spans are ordered by input document order, then by start offset
- No NLP dependencies; a single linear scan per document

Input validation (missing or duplicate ids) is the one construction-time
failure and raises InputValidationError before any span is produced.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
import re

from ..contracts.audit import AuditEventType
from ..contracts.base import InputValidationError
from ..contracts.model import Document, Span
from ..observability import LogCollector


_NEWLINES = re.compile(r'\r\n?')

# A run of non-terminator, non-newline characters, optionally closed by one terminator
_SENTENCE = re.compile(r'[^.!?\n]+[.!?]?')


@dataclass(frozen=True)
class DocumentInput:
    """One raw input item as supplied by a caller."""
    id: str
    text: str
    title: Optional[str] = None
    source_uri: Optional[str] = None
    metadata: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> 'DocumentInput':
        """Accept both `sourceUri` and `source_uri` spellings."""
        if not isinstance(item, Mapping):
            raise InputValidationError(f"Document must be a mapping, got {type(item).__name__}")
        doc_id = item.get('id')
        if not isinstance(doc_id, str) or not doc_id:
            raise InputValidationError(f"Document id must be a non-empty string, got {doc_id!r}")
        text = item.get('text')
        if text is None:
            raise InputValidationError(f"Document {doc_id!r} is missing text")
        if not isinstance(text, str):
            raise InputValidationError(f"Document {doc_id!r} text must be a string")
        metadata = item.get('metadata') or {}
        if not isinstance(metadata, Mapping):
            raise InputValidationError(f"Document {doc_id!r} metadata must be a mapping")
        if not all(isinstance(key, str) for key in metadata):
            raise InputValidationError(f"Document {doc_id!r} metadata keys must be strings")
        return cls(
            id=doc_id,
            text=text,
            title=item.get('title'),
            source_uri=item.get('sourceUri', item.get('source_uri')),
            metadata=tuple(sorted(metadata.items())),
        )


def normalize_text(text: str) -> str:
    """Unify line endings to '\\n'."""
    return _NEWLINES.sub('\n', text)


def sentence_split(text: str, doc_id: str = '') -> List[Span]:
    """
    Rule-based splitter preserving offsets.

    '.', '!' and '?' terminate a sentence; newlines are hard boundaries.
    Each retained segment is trimmed; `start`/`end` are the untrimmed
    match bounds in the normalized text. Whitespace-only segments are
    discarded.
    """
    normalized = normalize_text(text)
    spans: List[Span] = []
    for match in _SENTENCE.finditer(normalized):
        sentence = match.group(0).strip()
        if not sentence:
            continue
        spans.append(Span(
            doc_id=doc_id,
            start=match.start(),
            end=match.end(),
            text=sentence,
        ))
    return spans


def coerce_inputs(
    items: Iterable[Union[DocumentInput, Mapping[str, Any]]]
) -> List[DocumentInput]:
    """Validate raw items: ids must be present and unique within the run."""
    inputs: List[DocumentInput] = []
    seen = set()
    for item in items:
        doc = item if isinstance(item, DocumentInput) else DocumentInput.from_mapping(item)
        if doc.id in seen:
            raise InputValidationError(f"Duplicate document id: {doc.id!r}")
        seen.add(doc.id)
        inputs.append(doc)
    return inputs


def ingest_documents(
    items: Iterable[Union[DocumentInput, Mapping[str, Any]]],
    collector: Optional[LogCollector] = None
) -> Tuple[Tuple[Document, ...], Tuple[Span, ...]]:
    """
    Produce Documents and the flat sentence Span list.

    Every span is stamped with its owning document id.
    """
    documents: List[Document] = []
    spans: List[Span] = []

    for doc_input in coerce_inputs(items):
        document = Document(
            id=doc_input.id,
            text=normalize_text(doc_input.text),
            title=doc_input.title,
            source_uri=doc_input.source_uri,
            metadata=doc_input.metadata,
        )
        documents.append(document)

        doc_spans = sentence_split(document.text, doc_id=document.id)
        if not doc_spans and collector:
            collector.log(
                AuditEventType.ITEM_DROPPED,
                action="document_without_sentences",
                entity_id=document.id,
                metadata={'text_length': len(document.text)},
            )
        spans.extend(doc_spans)

    return tuple(documents), tuple(spans)


__all__ = [
    'DocumentInput',
    'normalize_text',
    'sentence_split',
    'coerce_inputs',
    'ingest_documents',
]
