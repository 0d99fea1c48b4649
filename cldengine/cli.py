"""
CLD Extraction CLI
==================

Command line front end for the causal pipeline.

Usage:
    cldengine extract notes.txt interview.txt --export-dir out/
    cldengine extract notes.txt --config overrides.json --require-edges
    cldengine config

Each input file becomes one document whose id is the file stem.
Diagnostics go to stderr; the JSON summary goes to stdout.
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Optional
import argparse
import json
import sys

from .config import DEFAULT_CONFIG, load_config_overrides
from .contracts.base import (
    ConfigurationError,
    ExportError,
    InputValidationError,
    NoCausalRelationshipsError,
)
from .pipeline import PipelineOptions, require_causal_structure, run_pipeline


def _summary(artifacts, include_audit: bool) -> dict:
    summary = {
        'documents': len(artifacts.documents),
        'sentences': len(artifacts.sentences),
        'themes': len(artifacts.themes),
        'variables': [v.to_dict() for v in artifacts.variables],
        'edges': [e.to_dict() for e in artifacts.edges],
        'loops': [lp.to_dict() for lp in artifacts.loops],
        'metrics': artifacts.metrics,
        'exports': artifacts.exports.to_dict() if artifacts.exports else None,
    }
    if include_audit:
        summary['auditLog'] = [entry.to_dict() for entry in artifacts.audit_log]
    return summary


def cmd_extract(args) -> int:
    documents = []
    for file_name in args.files:
        path = Path(file_name)
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            print(f"[FAIL] Cannot read {path}: {e}", file=sys.stderr)
            return 1
        documents.append({'id': path.stem, 'title': path.name, 'text': text, 'sourceUri': str(path)})

    try:
        overrides = load_config_overrides(args.config) if args.config else None
        options = PipelineOptions(
            overrides=overrides,
            export_dir=args.export_dir,
            base_name=args.base_name,
            max_loop_depth=args.max_depth,
        )
        print(f"[*] Running pipeline over {len(documents)} document(s)...", file=sys.stderr)
        artifacts = run_pipeline(documents, options)
        if args.require_edges:
            require_causal_structure(artifacts)
    except (ConfigurationError, InputValidationError, NoCausalRelationshipsError, ExportError) as e:
        print(f"[FAIL] {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"[FAIL] Cannot read config: {e}", file=sys.stderr)
        return 1

    print(
        f"[PASS] {len(artifacts.variables)} variables, {len(artifacts.edges)} edges, "
        f"{len(artifacts.loops)} loops.",
        file=sys.stderr,
    )
    print(json.dumps(_summary(artifacts, args.audit), indent=2, ensure_ascii=False))
    return 0


def cmd_config(args) -> int:
    print(json.dumps(DEFAULT_CONFIG.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cldengine",
        description="Deterministic causal loop diagram extraction",
    )
    subparsers = parser.add_subparsers(dest="command")

    extract = subparsers.add_parser("extract", help="Extract a CLD from text files")
    extract.add_argument("files", nargs="+", help="UTF-8 text files, one document each")
    extract.add_argument("--config", help="JSON file with config overrides")
    extract.add_argument("--export-dir", help="Write graph JSON, CSV, provenance HTML and Mermaid here")
    extract.add_argument("--base-name", default="causal", help="Base name for exported files")
    extract.add_argument("--max-depth", type=int, help="Maximum loop length (nodes)")
    extract.add_argument("--require-edges", action="store_true",
                         help="Fail when no causal relationships are found")
    extract.add_argument("--audit", action="store_true", help="Include the audit log in the output")
    extract.set_defaults(func=cmd_extract)

    config = subparsers.add_parser("config", help="Print the default configuration")
    config.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, 'func', None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
