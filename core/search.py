"""
Search criteria, paging and result containers.

Searches are expressed as a list of field filters, an optional ordering and a
page. The storage here is a set of in-memory lists, so criteria are applied to
model instances directly rather than translated into a query language.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel, Field

from core.exceptions import invalid_search_criteria

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class SearchCriteriaFilterOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    LIKE = "like"
    BOOL_EQ = "bool_eq"


class SearchCriteriaFilter(BaseModel):
    name: str
    value: str
    operator: SearchCriteriaFilterOperator = SearchCriteriaFilterOperator.EQ


class OrderBy(BaseModel):
    name: str
    ascending: bool = True


class PagingBean(BaseModel):
    """Which page of results to return. Pages are numbered from 1."""
    page: int = 1
    page_size: int = 20


class SearchCriteria(BaseModel):
    filters: list[SearchCriteriaFilter] = Field(default_factory=list)
    order_by: Optional[OrderBy] = None
    paging: Optional[PagingBean] = None


class SearchResults(BaseModel, Generic[T]):
    """One page of results plus the size of the whole result set."""
    beans: list[T] = Field(default_factory=list)
    total_size: int = 0


def validate_paging(paging: PagingBean, max_page_size: int = 500) -> None:
    if paging.page < 1:
        raise invalid_search_criteria(f"Page must be 1 or greater: {paging.page}")
    if not 1 <= paging.page_size <= max_page_size:
        raise invalid_search_criteria(
            f"Page size must be between 1 and {max_page_size}: {paging.page_size}"
        )


def validate_search_criteria(
    criteria: SearchCriteria,
    allowed_fields: Iterable[str],
    max_page_size: int = 500,
) -> None:
    """
    Reject criteria that reference unknown fields or ask for an invalid page.

    Raises:
        InvalidSearchCriteriaException: If the criteria cannot be applied
    """
    allowed = set(allowed_fields)
    for search_filter in criteria.filters:
        if search_filter.name not in allowed:
            raise invalid_search_criteria(f"Unsupported search field: {search_filter.name}")
        if search_filter.operator == SearchCriteriaFilterOperator.BOOL_EQ and \
                search_filter.value.lower() not in ("true", "false"):
            raise invalid_search_criteria(
                f"Boolean filter on {search_filter.name} needs true or false: {search_filter.value}"
            )
    if criteria.order_by and criteria.order_by.name not in allowed:
        raise invalid_search_criteria(f"Unsupported order field: {criteria.order_by.name}")
    if criteria.paging is not None:
        validate_paging(criteria.paging, max_page_size)


def _field_value(item: BaseModel, name: str) -> Any:
    value = getattr(item, name, None)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        # Compare in the same form the API serializes timestamps
        return value.isoformat()
    return value


def _like_pattern(value: str) -> "re.Pattern[str]":
    parts = re.split(r"[*%]", value)
    return re.compile(".*".join(re.escape(part) for part in parts), re.IGNORECASE | re.DOTALL)


def _matches(item: BaseModel, search_filter: SearchCriteriaFilter) -> bool:
    value = _field_value(item, search_filter.name)
    operator = search_filter.operator

    if operator == SearchCriteriaFilterOperator.BOOL_EQ:
        return bool(value) == (search_filter.value.lower() == "true")

    text = "" if value is None else str(value)
    if operator == SearchCriteriaFilterOperator.EQ:
        return text == search_filter.value
    if operator == SearchCriteriaFilterOperator.NEQ:
        return text != search_filter.value
    # LIKE accepts both * and % as wildcards, case-insensitive
    return _like_pattern(search_filter.value).fullmatch(text) is not None


def page_of(items: list[T], paging: PagingBean) -> SearchResults[T]:
    start = (paging.page - 1) * paging.page_size
    return SearchResults(
        beans=items[start:start + paging.page_size],
        total_size=len(items),
    )


def apply_search_criteria(items: Iterable[M], criteria: SearchCriteria) -> SearchResults[M]:
    """Filter, order and page a collection of models."""
    matched = [
        item for item in items
        if all(_matches(item, f) for f in criteria.filters)
    ]

    if criteria.order_by:
        name = criteria.order_by.name
        # None sorts first ascending
        matched.sort(
            key=lambda item: (_field_value(item, name) is not None, _field_value(item, name)),
            reverse=not criteria.order_by.ascending,
        )

    return page_of(matched, criteria.paging or PagingBean())
