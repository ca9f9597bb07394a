"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PageId wraps int so page ids are never confused with other integers
    - All valid states and operations encoded as Enums — no raw string matching
    - EMPTY_PAGE_MARKDOWN is the single default body for pages created without content

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (bus envelopes are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

PageId = NewType("PageId", int)

MISSING_PAGE_ID = PageId(-1)


# ─── Defaults ────────────────────────────────────────────────────

EMPTY_PAGE_MARKDOWN = (
    "# A new page\n"
    "\n"
    "Feel-free to write in Markdown!\n"
)


# ─── Enums ───────────────────────────────────────────────────────

class PageAction(str, Enum):
    """Page service operations — the `action` header of every bus request."""
    LIST_PAGES = "list_pages"
    FETCH_PAGE = "fetch_page"
    CREATE_PAGE = "create_page"
    SAVE_PAGE = "save_page"
    DELETE_PAGE = "delete_page"
    FETCH_ALL_PAGES_DATA = "fetch_all_pages_data"


class StartupState(str, Enum):
    """Orchestrator lifecycle states."""
    IDLE = "idle"
    STORE_STARTING = "store_starting"
    STORE_READY = "store_ready"
    FRONT_STARTING = "front_starting"
    RUNNING = "running"
    FAILED = "failed"


class ServiceTransport(str, Enum):
    """How HTTP front instances reach the page service."""
    BUS = "bus"
    LOCAL = "local"
