"""Paged wanted/missing query results."""

from pydantic import Field

from .arr_model import ArrModel


class WantedMissingPage[R](ArrModel):
    """One page of a wanted/missing query.

    Attributes:
        page: 1-based page number.
        page_size: Requested page size.
        total_records: Total matching records across all pages.
        records: Records on this page.
    """

    page: int = 1
    page_size: int = 0
    total_records: int = 0
    records: list[R] = Field(default_factory=list)
