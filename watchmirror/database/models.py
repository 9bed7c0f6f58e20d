"""SQLAlchemy database models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from watchmirror.database.connection import Base


class FsNodeRecord(Base):
    """Stored filesystem entry, keyed by its derived document ID."""

    __tablename__ = "fs_nodes"

    doc_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    full_path: Mapped[str] = mapped_column(String, nullable=False, index=True)
    tree_path: Mapped[str] = mapped_column(
        String, nullable=False, index=True
    )  # '/a/b/' for '/a/b', prefix-matched by subtree queries
    is_dir: Mapped[bool] = mapped_column(Boolean, nullable=False)
    is_watch_folder: Mapped[bool] = mapped_column(Boolean, default=False)
    indexed_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
