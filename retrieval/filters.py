"""
Search filter parsing.

Recognized options (on-the-wire names):
    category      exact match (case-insensitive)
    tags          documents must carry ALL of these tags
    author        exact match (case-insensitive)
    text          whitespace-separated tokens, substring match on name/description
    dateFrom      inclusive lower bound on lastUpdated (YYYY-MM-DD)
    dateTo        inclusive upper bound on lastUpdated (YYYY-MM-DD)
    sort          "recency" (default) or "name"
    limit         page size (default: engine page size)
    offset        results to skip (default: 0)
    includeBody   include document bodies in results (default: false)

Anything else, an inverted date range or negative pagination is rejected
with InvalidFilterError; nothing is clamped.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from catalog.errors import InvalidFilterError
from catalog.index import normalize_key
from catalog.schema import parse_iso_date

SORT_ORDERS = ("recency", "name")

FilterText = Annotated[StrictStr, Field(min_length=1)]


class SearchFilter(BaseModel):
    """A validated search request."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    category: Optional[FilterText] = None
    tags: Optional[Annotated[Tuple[FilterText, ...], Field(min_length=1)]] = None
    author: Optional[FilterText] = None
    text: Optional[FilterText] = None
    date_from: Optional[date] = Field(default=None, alias="dateFrom")
    date_to: Optional[date] = Field(default=None, alias="dateTo")
    sort: Literal["recency", "name"] = "recency"
    limit: Optional[Annotated[StrictInt, Field(ge=0)]] = None
    offset: StrictInt = Field(default=0, ge=0)
    include_body: StrictBool = Field(default=False, alias="includeBody")

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def coerce_dates(cls, value: Any) -> Optional[date]:
        if value is None:
            return None
        return parse_iso_date(value)

    @model_validator(mode="after")
    def check_date_range(self) -> "SearchFilter":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError(
                f"dateFrom {self.date_from.isoformat()} is after dateTo {self.date_to.isoformat()}"
            )
        return self

    @property
    def tokens(self) -> List[str]:
        """Casefolded text tokens (empty when no text filter)."""
        if not self.text:
            return []
        return [token.casefold() for token in self.text.split()]

    @property
    def structured(self) -> List[Tuple[str, str]]:
        """(index, key) pairs answerable from the secondary indexes."""
        pairs = []
        if self.category is not None:
            pairs.append(("category", self.category))
        if self.author is not None:
            pairs.append(("author", self.author))
        for tag in dict.fromkeys(normalize_key(t) for t in self.tags or ()):
            pairs.append(("tag", tag))
        return pairs


def _problems_from(exc: PydanticValidationError) -> List[str]:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        if error["type"] == "extra_forbidden":
            problems.append(f"{location}: unrecognized filter option")
        elif error["type"] == "value_error":
            message = str(error["ctx"]["error"])
            problems.append(f"{location}: {message}" if location else message)
        else:
            problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return problems


def parse_filter(raw: Union[SearchFilter, Mapping[str, Any], None]) -> SearchFilter:
    """Validate a filter given as a mapping of options.

    Raises:
        InvalidFilterError: Listing every problem found
    """
    if raw is None:
        return SearchFilter()
    if isinstance(raw, SearchFilter):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidFilterError([f"filter must be a mapping of options, got: {type(raw).__name__}"])

    try:
        return SearchFilter.model_validate(dict(raw))
    except PydanticValidationError as exc:
        raise InvalidFilterError(_problems_from(exc)) from None
