"""Page Schemas — results returned by the page service.

Invariants:
    - PageLookup.found=False is a valid result, not an error
    - PageLookup.id is -1 and raw_content is None when found is False
    - PageData always carries non-null content
"""

from pydantic import BaseModel, ConfigDict

from wiki.core.domain_types import MISSING_PAGE_ID


class PageData(BaseModel):
    """Full page row — used by the export path."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    content: str


class PageLookup(BaseModel):
    """Result of fetching a page by name."""
    found: bool
    name: str
    id: int = MISSING_PAGE_ID
    raw_content: str | None = None

    @classmethod
    def missing(cls, name: str) -> "PageLookup":
        return cls(found=False, name=name)
