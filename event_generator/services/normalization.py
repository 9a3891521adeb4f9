"""
Section content normalization.

Model output describes section content loosely: a plain string, an object
with some fields missing, or an object whose list fields arrive as
comma-joined strings. This module maps any of those shapes to the canonical
content model for the section type.

Dispatch is a table keyed by lowercase section type, one pure function per
type. Unknown types use the text transform. A transform that fails degrades
to a text fallback and never raises to the caller.
"""

import json
import logging
import re
from typing import Any, Callable

from dateutil import parser as date_parser
from pydantic import BaseModel

from event_generator.exceptions import NormalizationError
from event_generator.models.content import (
    AgendaContent,
    AgendaItem,
    ContactContent,
    FAQContent,
    FAQItem,
    LocationContent,
    RegistrationContent,
    RegistrationField,
    SectionContent,
    SocialMediaHandle,
    Speaker,
    SpeakersContent,
    Sponsor,
    SponsorsContent,
    TextContent,
)
from event_generator.models.events import Section

logger = logging.getLogger(__name__)

ERROR_TEXT = "Error processing content"

DEFAULT_SPEAKER_NAME = "Unknown Speaker"
DEFAULT_AGENDA_TIME = "TBD"
DEFAULT_AGENDA_TITLE = "Untitled Agenda Item"
DEFAULT_REGISTRATION_TEXT = "Register for this event"
DEFAULT_BUTTON_TEXT = "Register Now"
DEFAULT_QUESTION = "Question"
DEFAULT_ANSWER = "Answer"
MISSING_ANSWER = "No answer provided"
PLACEHOLDER_ANSWER = "Please contact us for more information"
DEFAULT_CONTACT_TEXT = "Contact us for more information"
DEFAULT_SPONSOR_NAME = "Sponsor"
DEFAULT_SOCIAL_PLATFORM = "Other"

_LIST_SPLIT_RE = re.compile(r"[,\n]")
_AGENDA_ITEM_RE = re.compile(r"^([^-]+)-(.+)$", re.DOTALL)
_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)
_VIRTUAL_RE = re.compile(r"zoom|online|virtual|web", re.IGNORECASE)
_QUESTION_MARKER_RE = re.compile(r"Question:|Q:")
_ANSWER_MARKER_RE = re.compile(r"Answer:|A:")
_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PHONE_RE = re.compile(r"(\+\d{1,3}[ -]?)?\(?\d{3}\)?[ -]?\d{3}[ -]?\d{4}")
_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)


# =============================================================================
# Helpers
# =============================================================================


def _split_list(text: str) -> list[str]:
    """Split on commas and newlines, dropping blanks."""
    return [part.strip() for part in _LIST_SPLIT_RE.split(text) if part.strip()]


def _split_commas(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _text(value: Any, default: str = "") -> str:
    """Read a scalar field, falling back to the default when empty."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value
    return str(value)


def _pick(obj: dict, *keys: str) -> Any:
    """First non-empty value among alternative key spellings."""
    for key in keys:
        value = obj.get(key)
        if value not in (None, ""):
            return value
    return None


def _as_mapping(content: Any, list_key: str | None = None) -> dict:
    """View object content as a dict; bare lists become the item list."""
    if isinstance(content, dict):
        return content
    if list_key and isinstance(content, list):
        return {list_key: content}
    raise NormalizationError(
        f"Unsupported content shape: {type(content).__name__}",
        details={"list_key": list_key},
    )


# =============================================================================
# Speakers
# =============================================================================


def _speakers_from_string(text: str) -> list[Speaker]:
    return [Speaker(name=name) for name in _split_commas(text)]


def normalize_speakers(content: Any) -> SpeakersContent:
    if isinstance(content, str):
        return SpeakersContent(speakers=_speakers_from_string(content))

    obj = _as_mapping(content, "speakers")
    raw = obj.get("speakers")

    if isinstance(raw, str):
        return SpeakersContent(speakers=_speakers_from_string(raw))

    speakers = []
    for entry in raw if isinstance(raw, list) else []:
        if isinstance(entry, str):
            speakers.extend(_speakers_from_string(entry))
        elif isinstance(entry, dict):
            speakers.append(
                Speaker(
                    name=_text(entry.get("name"), DEFAULT_SPEAKER_NAME),
                    role=_text(entry.get("role")),
                    bio=_text(entry.get("bio")),
                )
            )
    return SpeakersContent(speakers=speakers)


# =============================================================================
# Agenda
# =============================================================================


def _agenda_item_from_string(item: str) -> AgendaItem:
    match = _AGENDA_ITEM_RE.match(item)
    if match:
        return AgendaItem(time=match.group(1).strip(), title=match.group(2).strip())
    return AgendaItem(time=DEFAULT_AGENDA_TIME, title=item)


def _agenda_items_from_string(text: str) -> list[AgendaItem]:
    return [_agenda_item_from_string(item) for item in _split_list(text)]


def normalize_agenda(content: Any) -> AgendaContent:
    if isinstance(content, str):
        return AgendaContent(items=_agenda_items_from_string(content))

    obj = _as_mapping(content, "items")
    raw = obj.get("items")

    if isinstance(raw, str):
        return AgendaContent(items=_agenda_items_from_string(raw))

    items = []
    for entry in raw if isinstance(raw, list) else []:
        if isinstance(entry, str):
            items.extend(_agenda_items_from_string(entry))
        elif isinstance(entry, dict):
            items.append(
                AgendaItem(
                    time=_text(entry.get("time"), DEFAULT_AGENDA_TIME),
                    title=_text(entry.get("title"), DEFAULT_AGENDA_TITLE),
                    description=_text(entry.get("description")),
                    speaker=_text(entry.get("speaker")),
                )
            )
    return AgendaContent(items=items)


# =============================================================================
# Registration
# =============================================================================


def _registration_field_from_name(name: str) -> RegistrationField:
    lowered = name.lower()
    if "email" in lowered:
        return RegistrationField(name=name, required=True, type="email")
    if "phone" in lowered:
        return RegistrationField(name=name, required=False, type="tel")
    return RegistrationField(name=name, required="name" in lowered, type="text")


def _registration_fields(raw: Any) -> list[RegistrationField]:
    if isinstance(raw, str):
        return [_registration_field_from_name(name) for name in _split_commas(raw)]

    fields = []
    for entry in raw if isinstance(raw, list) else []:
        if isinstance(entry, str):
            fields.extend(_registration_field_from_name(name) for name in _split_commas(entry))
        elif isinstance(entry, dict):
            name = _text(entry.get("name"))
            if not name:
                continue
            guessed = _registration_field_from_name(name)
            required = entry.get("required")
            fields.append(
                RegistrationField(
                    name=name,
                    required=guessed.required if required is None else bool(required),
                    type=_text(entry.get("type"), guessed.type),
                )
            )
    return fields


def normalize_registration(content: Any) -> RegistrationContent:
    if isinstance(content, str):
        return RegistrationContent(
            text=content,
            button_text=DEFAULT_BUTTON_TEXT,
            fields=[
                RegistrationField(name="Full Name", required=True, type="text"),
                RegistrationField(name="Email", required=True, type="email"),
            ],
        )

    obj = _as_mapping(content)
    return RegistrationContent(
        text=_text(obj.get("text"), DEFAULT_REGISTRATION_TEXT),
        button_text=_text(_pick(obj, "buttonText", "button_text"), DEFAULT_BUTTON_TEXT),
        fields=_registration_fields(obj.get("fields")),
    )


# =============================================================================
# Location
# =============================================================================


def normalize_location(content: Any) -> LocationContent:
    if isinstance(content, str):
        url_match = _URL_RE.search(content)
        if url_match or _VIRTUAL_RE.search(content):
            return LocationContent(
                is_virtual=True,
                virtual_link=url_match.group(0) if url_match else "",
                text=content,
            )

        parts = [part.strip() for part in content.split(",")]
        parts += [""] * (4 - len(parts))
        return LocationContent(
            address=parts[0],
            city=parts[1],
            state=parts[2],
            zip_code=parts[3],
            is_virtual=False,
            text=content,
        )

    obj = _as_mapping(content)
    return LocationContent(
        address=_text(obj.get("address")),
        city=_text(obj.get("city")),
        state=_text(obj.get("state")),
        zip_code=_text(_pick(obj, "zipCode", "zip_code")),
        virtual_link=_text(_pick(obj, "virtualLink", "virtual_link")),
        is_virtual=bool(_pick(obj, "isVirtual", "is_virtual")),
        text=_text(obj.get("text")),
    )


# =============================================================================
# FAQ
# =============================================================================


def _faq_items_from_string(text: str) -> list[FAQItem]:
    if _QUESTION_MARKER_RE.search(text):
        items = []
        for chunk in _QUESTION_MARKER_RE.split(text):
            if not chunk.strip():
                continue
            parts = [part.strip() for part in _ANSWER_MARKER_RE.split(chunk, maxsplit=1)]
            items.append(
                FAQItem(
                    question=parts[0] or DEFAULT_QUESTION,
                    answer=parts[1].rstrip(",").strip() if len(parts) > 1 and parts[1] else MISSING_ANSWER,
                )
            )
        return items

    return [FAQItem(question=line, answer=PLACEHOLDER_ANSWER) for line in _split_list(text)]


def _faq_item_from_line(line: str) -> FAQItem:
    question, mark, answer = line.partition("?")
    if mark and answer.strip():
        return FAQItem(question=question.strip() + "?", answer=answer.strip())
    return FAQItem(question=line, answer=PLACEHOLDER_ANSWER)


def normalize_faq(content: Any) -> FAQContent:
    if isinstance(content, str):
        return FAQContent(items=_faq_items_from_string(content))

    obj = _as_mapping(content, "items")
    raw = obj.get("items")

    if isinstance(raw, str):
        return FAQContent(items=[_faq_item_from_line(line) for line in _split_list(raw)])

    items = []
    for entry in raw if isinstance(raw, list) else []:
        if isinstance(entry, str):
            items.append(_faq_item_from_line(entry.strip()))
        elif isinstance(entry, dict):
            items.append(
                FAQItem(
                    question=_text(entry.get("question"), DEFAULT_QUESTION),
                    answer=_text(entry.get("answer"), DEFAULT_ANSWER),
                )
            )
    return FAQContent(items=items)


# =============================================================================
# Contact
# =============================================================================


def _social_handle_from_string(entry: str) -> SocialMediaHandle:
    platform, sep, handle = entry.partition(":")
    if sep and handle.strip():
        return SocialMediaHandle(platform=platform.strip(), handle=handle.strip())
    return SocialMediaHandle(platform=DEFAULT_SOCIAL_PLATFORM, handle=entry.strip())


def _social_media(raw: Any) -> list[SocialMediaHandle]:
    if isinstance(raw, str):
        return [_social_handle_from_string(entry) for entry in _split_commas(raw)]

    handles = []
    for entry in raw if isinstance(raw, list) else []:
        if isinstance(entry, str) and entry.strip():
            handles.append(_social_handle_from_string(entry))
        elif isinstance(entry, dict):
            handles.append(
                SocialMediaHandle(
                    platform=_text(entry.get("platform"), DEFAULT_SOCIAL_PLATFORM),
                    handle=_text(entry.get("handle")),
                )
            )
    return handles


def normalize_contact(content: Any) -> ContactContent:
    if isinstance(content, str):
        email_match = _EMAIL_RE.search(content)
        phone_match = _PHONE_RE.search(content)
        return ContactContent(
            email=email_match.group(0) if email_match else "",
            phone=phone_match.group(0) if phone_match else "",
            social_media=[],
            text=content,
        )

    obj = _as_mapping(content)
    return ContactContent(
        email=_text(obj.get("email")),
        phone=_text(obj.get("phone")),
        social_media=_social_media(_pick(obj, "socialMedia", "social_media")),
        text=_text(obj.get("text"), DEFAULT_CONTACT_TEXT),
    )


# =============================================================================
# Sponsors
# =============================================================================


def _sponsor_from_line(line: str) -> Sponsor:
    parts = [part.strip() for part in line.split("-")]
    if len(parts) > 1:
        return Sponsor(name=parts[0] or DEFAULT_SPONSOR_NAME, level=parts[1])
    return Sponsor(name=parts[0])


def _sponsors_from_string(text: str) -> list[Sponsor]:
    return [_sponsor_from_line(line) for line in _split_list(text)]


def normalize_sponsors(content: Any) -> SponsorsContent:
    if isinstance(content, str):
        return SponsorsContent(sponsors=_sponsors_from_string(content))

    obj = _as_mapping(content, "sponsors")
    raw = obj.get("sponsors")

    if isinstance(raw, str):
        return SponsorsContent(sponsors=_sponsors_from_string(raw))

    sponsors = []
    for entry in raw if isinstance(raw, list) else []:
        if isinstance(entry, str):
            sponsors.extend(_sponsors_from_string(entry))
        elif isinstance(entry, dict):
            sponsors.append(
                Sponsor(
                    name=_text(entry.get("name"), DEFAULT_SPONSOR_NAME),
                    level=_text(entry.get("level")),
                    description=_text(entry.get("description")),
                )
            )
    return SponsorsContent(sponsors=sponsors)


# =============================================================================
# Text
# =============================================================================


def normalize_text(content: Any) -> TextContent:
    if isinstance(content, str):
        return TextContent(text=content)
    if isinstance(content, dict) and "text" in content:
        return TextContent(text=_text(content["text"]))
    return TextContent(text=json.dumps(content, ensure_ascii=False, default=str))


# =============================================================================
# Dispatch
# =============================================================================


CONTENT_NORMALIZERS: dict[str, Callable[[Any], SectionContent]] = {
    "speakers": normalize_speakers,
    "agenda": normalize_agenda,
    "registration": normalize_registration,
    "location": normalize_location,
    "faq": normalize_faq,
    "contact": normalize_contact,
    "sponsors": normalize_sponsors,
}


def normalize_content(section_type: str, content: Any) -> SectionContent:
    """
    Map raw section content to its canonical content model.

    Args:
        section_type: Section type tag, matched case-insensitively
        content: Raw content (string, dict, list, or a content model)

    Returns:
        Canonical content model; never None

    Example:
        >>> normalize_content("speakers", "John Doe, Jane Smith").speakers[1].name
        'Jane Smith'
    """
    if isinstance(content, BaseModel):
        content = content.model_dump(by_alias=True)

    if content is None or content == "":
        return TextContent(text="")

    transform = CONTENT_NORMALIZERS.get((section_type or "").lower(), normalize_text)

    try:
        return transform(content)
    except Exception as e:
        logger.warning(
            f"Failed to normalize content for section type '{section_type}': {e}",
            exc_info=True,
        )
        return TextContent(text=ERROR_TEXT)


def default_section_title(section_type: str) -> str:
    """Title-cased default title for a section type, e.g. "faq" -> "Faq"."""
    return section_type.replace("_", " ").title()


def normalize_section(raw: Any) -> Section:
    """
    Normalize one raw section dict into a canonical Section.

    The type is lowercased; a missing title falls back to the title-cased type.
    """
    if isinstance(raw, Section):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, dict):
        raw = {"type": "text", "content": raw}

    section_type = _text(raw.get("type"), "text").strip().lower()
    title = _text(raw.get("title"), default_section_title(section_type))

    return Section(
        type=section_type,
        title=title,
        content=normalize_content(section_type, raw.get("content")),
    )


# =============================================================================
# Dates
# =============================================================================


def normalize_date(value: Any) -> str:
    """
    Reformat a date string as ISO 8601 when it parses.

    Ordinal suffixes ("1st may 2025") are stripped first. Values that do not
    parse are returned unchanged; plausibility is not checked.
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""

    try:
        return date_parser.parse(_ORDINAL_RE.sub(r"\1", text)).isoformat()
    except (ValueError, OverflowError) as e:
        logger.debug(f"Leaving unparseable date as-is: '{text}' ({e})")
        return text
