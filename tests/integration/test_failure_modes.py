"""
Failure Mode Tests

Tests for explicit error states.

AXIOM UNDER TEST:
=================
Bad configuration and malformed input fail at construction time.
Empty results are data; raising on them is the caller's decision.
"""

import pytest

from cldengine.contracts.audit import AuditEventType
from cldengine.contracts.base import (
    CldEngineError,
    ConfigurationError,
    ExportError,
    InputValidationError,
    NoCausalRelationshipsError,
)
from cldengine.pipeline import CausalPipeline, PipelineOptions, require_causal_structure, run_pipeline

from .fixtures import NO_CUE_TEXT, create_balancing_corpus, create_document


# =============================================================================
# CONSTRUCTION-TIME ERRORS
# =============================================================================

class TestConstructionErrors:

    def test_bad_regex_fails_before_any_document(self):
        options = PipelineOptions(overrides={'group_rules': [{'pattern': '[', 'group': 'policy'}]})
        with pytest.raises(ConfigurationError):
            CausalPipeline(options)

    def test_missing_id(self):
        with pytest.raises(InputValidationError):
            run_pipeline([{'text': 'Rework leads to scrapping.'}])

    def test_duplicate_ids(self):
        with pytest.raises(InputValidationError):
            run_pipeline([create_document('a', 'x'), create_document('a', 'y')])

    def test_errors_share_a_base(self):
        for error in (ConfigurationError, InputValidationError, NoCausalRelationshipsError, ExportError):
            assert issubclass(error, CldEngineError)


# =============================================================================
# EMPTY RESULTS
# =============================================================================

class TestEmptyResults:

    def test_no_documents(self):
        artifacts = run_pipeline([])
        assert artifacts.is_empty
        assert artifacts.documents == ()
        assert artifacts.metrics['nodeCount'] == 0

    def test_empty_result_is_audited_not_raised(self):
        artifacts = run_pipeline([create_document('d1', NO_CUE_TEXT)])
        empty = [e for e in artifacts.audit_log if e.event_type == AuditEventType.EMPTY_RESULT]
        assert len(empty) == 1
        assert dict(empty[0].metadata) == {'variable_count': '2', 'edge_count': '0'}

    def test_caller_opts_into_failure(self):
        artifacts = run_pipeline([create_document('d1', NO_CUE_TEXT)])
        with pytest.raises(NoCausalRelationshipsError) as exc_info:
            require_causal_structure(artifacts)
        assert exc_info.value.variable_count == 2
        assert exc_info.value.edge_count == 0
        assert "No causal relationships found" in str(exc_info.value)

    def test_require_passes_through(self):
        artifacts = run_pipeline(create_balancing_corpus())
        assert require_causal_structure(artifacts) is artifacts


# =============================================================================
# EXPORT FAILURE
# =============================================================================

class TestExportFailure:

    def test_export_error_surfaces(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding='utf-8')
        with pytest.raises(ExportError):
            run_pipeline(create_balancing_corpus(), PipelineOptions(export_dir=blocker))
