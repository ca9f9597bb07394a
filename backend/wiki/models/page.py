"""Page ORM — persisted wiki page: numeric id, unique name, raw markdown.

Invariants:
    - id is an autoincrement integer primary key, never reused after delete
    - name is unique (database constraint, the arbiter of concurrent creates)
    - content is non-nullable text, always raw markdown

Design Decisions:
    - sqlite_autoincrement: SQLite otherwise recycles the highest deleted rowid;
      PostgreSQL sequences never do
"""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wiki.db.base import Base


class Page(Base):
    """A single wiki page."""
    __tablename__ = "pages"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    name: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
