"""
Service layer for the event generator.

Provides the pure building blocks the orchestrator coordinates:
- Policy loading and the constraint filter
- JSON extraction from free-form model text
- Per-section-type content normalization
- Merging of clarification answers by field path
"""

from event_generator.services.constraints import (
    ConstraintFilter,
    JsonPolicyLoader,
    DEFAULT_POLICY_DIR,
)

from event_generator.services.extraction import (
    ExtractionFailure,
    extract_json,
    is_extraction_failure,
)

from event_generator.services.normalization import (
    CONTENT_NORMALIZERS,
    default_section_title,
    normalize_content,
    normalize_date,
    normalize_section,
)

from event_generator.services.clarification import (
    apply_answers,
    parse_path,
    set_path,
)

__all__ = [
    # Constraints
    "ConstraintFilter",
    "JsonPolicyLoader",
    "DEFAULT_POLICY_DIR",
    # Extraction
    "ExtractionFailure",
    "extract_json",
    "is_extraction_failure",
    # Normalization
    "CONTENT_NORMALIZERS",
    "default_section_title",
    "normalize_content",
    "normalize_date",
    "normalize_section",
    # Clarification
    "apply_answers",
    "parse_path",
    "set_path",
]
