"""Policy data shapes used by the constraint filter."""

from pydantic import BaseModel, Field


class PolicyData(BaseModel):
    """
    Allowed section types, banned terms and required event fields.

    Also used as the constraints snapshot a generation run takes at start.
    """

    allowed_sections: list[str] = Field(default_factory=list)
    banned_words: list[str] = Field(default_factory=list)
    banned_keywords: list[str] = Field(default_factory=list)
    required_fields: list[str] = Field(default_factory=list)


class BannedContentCheck(BaseModel):
    """Result of scanning text for banned words and keywords."""

    has_banned: bool
    banned_terms: list[str] = Field(default_factory=list)
