"""
Schema validation for document front matter.

Required fields: name, description, category, author, tags, lastUpdated.
Optional fields: authorUrl. Unrecognized fields are kept but not checked.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Annotated, Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError, Violation

DESCRIPTION_MAX_LENGTH = 300
MAX_TAGS = 10
URL_SCHEMES = ("http", "https")

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Tag = Annotated[str, Field(min_length=1)]


def parse_iso_date(value: Any) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass through a date).

    Raises:
        ValueError: If the value is not a real calendar date in that format
    """
    # datetime is a date subclass; a timestamp is not a calendar date
    if isinstance(value, datetime):
        raise ValueError("must be a date without a time component (YYYY-MM-DD)")
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError("must be a date string in YYYY-MM-DD format")

    text = value.strip()
    if not ISO_DATE_PATTERN.match(text):
        raise ValueError(f"'{text}' is not in YYYY-MM-DD format")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValueError(f"'{text}' is not a real calendar date") from None


class Metadata(BaseModel):
    """Validated front-matter metadata of one document.

    Attribute names are snake_case; the on-disk names (``authorUrl``,
    ``lastUpdated``) are the aliases used for input and output.
    """

    model_config = ConfigDict(extra="allow", frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    description: str = Field(min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    category: str = Field(min_length=1)
    author: str = Field(min_length=1)
    author_url: Optional[str] = Field(default=None, alias="authorUrl")
    tags: Tuple[Tag, ...] = Field(min_length=1, max_length=MAX_TAGS)
    last_updated: date = Field(alias="lastUpdated")

    @field_validator("author_url")
    @classmethod
    def check_author_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parts = urlsplit(value)
        if parts.scheme.lower() not in URL_SCHEMES or not parts.netloc:
            raise ValueError(f"'{value}' is not an absolute http(s) URL")
        return value

    @field_validator("tags")
    @classmethod
    def check_unique_tags(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        seen = set()
        for tag in value:
            key = tag.casefold()
            if key in seen:
                raise ValueError(f"duplicate tag '{tag}' (tags are case-insensitive)")
            seen.add(key)
        return value

    @field_validator("last_updated", mode="before")
    @classmethod
    def coerce_last_updated(cls, value: Any) -> date:
        return parse_iso_date(value)

    @field_validator("last_updated")
    @classmethod
    def check_not_in_future(cls, value: date, info: ValidationInfo) -> date:
        context = info.context or {}
        today = context.get("today") or date.today()
        tolerance = context.get("future_tolerance_days", 0)
        latest = today + timedelta(days=tolerance)
        if value > latest:
            raise ValueError(f"{value.isoformat()} is in the future (latest allowed: {latest.isoformat()})")
        return value

    @property
    def extras(self) -> Dict[str, Any]:
        """Unrecognized front-matter fields, preserved as loaded."""
        return dict(self.model_extra or {})

    def to_front_matter(self) -> Dict[str, Any]:
        """Return fields under their on-disk names, known fields first."""
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "author": self.author,
        }
        if self.author_url is not None:
            data["authorUrl"] = self.author_url
        data["tags"] = list(self.tags)
        data["lastUpdated"] = self.last_updated.isoformat()
        for key in sorted(self.extras):
            data[key] = self.extras[key]
        return data


def _violations_from(exc: PydanticValidationError) -> List[Violation]:
    violations = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "<root>"
        if error["type"] == "value_error":
            reason = str(error["ctx"]["error"])
        elif error["type"] == "missing":
            reason = "required field is missing"
        else:
            reason = error["msg"]
        violations.append(Violation(field=field, reason=reason))
    return violations


def validate_metadata(
    raw: Mapping[str, Any],
    *,
    today: Optional[date] = None,
    future_tolerance_days: int = 0,
    source_ref: Optional[str] = None,
) -> Metadata:
    """Validate decoded front matter.

    Args:
        raw: Decoded front-matter fields
        today: Reference date for the future-date check (default: today)
        future_tolerance_days: Days past ``today`` that lastUpdated may be
        source_ref: Where the document came from (for error reporting)

    Returns:
        Validated Metadata

    Raises:
        ValidationError: With every violated constraint
    """
    if not isinstance(raw, Mapping):
        raise ValidationError(
            [Violation("<root>", f"front matter must be a mapping, got: {type(raw).__name__}")],
            source_ref=source_ref,
        )

    context = {"today": today, "future_tolerance_days": future_tolerance_days}
    try:
        return Metadata.model_validate(dict(raw), context=context)
    except PydanticValidationError as exc:
        raise ValidationError(_violations_from(exc), source_ref=source_ref) from None
