"""
Constraint filter for prompt and section policy.

Holds the allowed section types, banned words and keywords, and the required
event fields. Policy is loaded once through an explicit `initialize()` call;
the filter instance is then passed by reference to the orchestrator.

Usage:
    from event_generator.services.constraints import ConstraintFilter, JsonPolicyLoader

    constraint_filter = ConstraintFilter(JsonPolicyLoader())
    constraint_filter.initialize()

    check = constraint_filter.has_banned_content("Join our gambling night")
    if check.has_banned:
        print(check.banned_terms)
"""

import json
import logging
from pathlib import Path
from typing import Callable

from event_generator.models.policy import BannedContentCheck, PolicyData

logger = logging.getLogger(__name__)

DEFAULT_POLICY_DIR = Path(__file__).resolve().parent.parent / "policy"

ALLOWED_SECTIONS_FILE = "allowed_sections.json"
BANNED_WORDS_FILE = "banned_words.json"
BANNED_KEYWORDS_FILE = "banned_keywords.json"
EVENT_SCHEMA_FILE = "event_schema.json"

PolicyLoader = Callable[[], PolicyData]


class JsonPolicyLoader:
    """
    Load policy data from a directory of JSON files.

    Expected files:
    - allowed_sections.json: {"sections": [...]}
    - banned_words.json: {"words": [...]}
    - banned_keywords.json: {"keywords": [...]}
    - event_schema.json: JSON schema whose "required" list names required fields
    """

    def __init__(self, policy_dir: str | Path | None = None):
        self.policy_dir = Path(policy_dir) if policy_dir else DEFAULT_POLICY_DIR

    def __call__(self) -> PolicyData:
        allowed = self._read(ALLOWED_SECTIONS_FILE).get("sections", [])
        words = self._read(BANNED_WORDS_FILE).get("words", [])
        keywords = self._read(BANNED_KEYWORDS_FILE).get("keywords", [])
        schema = self._read(EVENT_SCHEMA_FILE)

        return PolicyData(
            allowed_sections=[section.lower() for section in allowed],
            banned_words=words,
            banned_keywords=keywords,
            required_fields=schema.get("required", []),
        )

    def _read(self, filename: str) -> dict:
        path = self.policy_dir / filename
        with path.open(encoding="utf-8") as handle:
            return json.load(handle)


class ConstraintFilter:
    """
    Policy queries over a load-once policy cache.

    If loading fails, the filter stays usable and answers every query
    against empty lists (fail-open).
    """

    def __init__(self, loader: PolicyLoader | None = None):
        self._loader = loader or JsonPolicyLoader()
        self._policy = PolicyData()
        self._load_result: bool | None = None

    @classmethod
    def from_policy(cls, policy: PolicyData) -> "ConstraintFilter":
        """Build an already-initialized filter around in-memory policy data."""
        constraint_filter = cls(loader=lambda: policy)
        constraint_filter._policy = policy
        constraint_filter._load_result = True
        logger.debug("Constraint filter built from policy snapshot")
        return constraint_filter

    @property
    def is_initialized(self) -> bool:
        """True once policy data has loaded successfully."""
        return bool(self._load_result)

    def initialize(self) -> bool:
        """
        Load policy data once.

        Repeat calls are no-ops returning the cached result, including a
        cached failure.

        Returns:
            True if policy data loaded, False otherwise
        """
        if self._load_result is not None:
            logger.debug("Constraint filter already initialized, returning cached result")
            return self._load_result

        try:
            policy = self._loader()
        except Exception as e:
            logger.error(f"Failed to load policy data: {e}", exc_info=True)
            self._policy = PolicyData()
            self._load_result = False
            return False

        self._policy = policy
        self._load_result = True
        logger.info(
            f"Loaded policy: {len(policy.allowed_sections)} allowed sections, "
            f"{len(policy.banned_words)} banned words, "
            f"{len(policy.banned_keywords)} banned keywords, "
            f"{len(policy.required_fields)} required fields"
        )
        return True

    def is_section_allowed(self, section_type: str) -> bool:
        """Case-insensitive membership test against the allowed sections."""
        allowed = {section.lower() for section in self._policy.allowed_sections}
        return section_type.lower() in allowed

    def get_allowed_sections(self) -> list[str]:
        return list(self._policy.allowed_sections)

    def get_banned_words(self) -> list[str]:
        return list(self._policy.banned_words)

    def get_banned_keywords(self) -> list[str]:
        return list(self._policy.banned_keywords)

    def get_required_fields(self) -> list[str]:
        """Required event fields in policy order."""
        return list(self._policy.required_fields)

    def has_banned_content(self, text: str) -> BannedContentCheck:
        """
        Scan text for banned words and keywords.

        Matching is a case-insensitive substring test. Words are listed
        before keywords; a term present in both lists is reported twice.

        Args:
            text: Text to scan

        Returns:
            BannedContentCheck with the matched terms as configured
        """
        text_lower = (text or "").lower()

        found_words = [
            word for word in self._policy.banned_words
            if word and word.lower() in text_lower
        ]
        found_keywords = [
            keyword for keyword in self._policy.banned_keywords
            if keyword and keyword.lower() in text_lower
        ]
        banned_terms = found_words + found_keywords

        if banned_terms:
            logger.warning(f"Found banned terms in content: {', '.join(banned_terms)}")

        return BannedContentCheck(
            has_banned=bool(banned_terms),
            banned_terms=banned_terms,
        )

    def snapshot(self) -> PolicyData:
        """Independent copy of the current policy data."""
        return self._policy.model_copy(deep=True)
