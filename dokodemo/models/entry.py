"""Entry model."""

import enum

from sqlalchemy import String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .tag import Tag


class EntryStatus(str, enum.Enum):
    """Entry status enum."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DROPPED = "dropped"


class Entry(Base, TimestampMixin):
    """Tracked piece of content: book, article, note, link..."""

    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)

    # Имя категории. Проверяется по таблице categories при записи, не внешним ключом:
    # удалённая категория оставляет у записей "осиротевший" kind.
    kind: Mapped[str] = mapped_column(String, nullable=False)

    status: Mapped[EntryStatus] = mapped_column(
        SQLEnum(
            EntryStatus,
            native_enum=False,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        default=EntryStatus.PLANNED,
        nullable=False,
    )
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String, default="manual", nullable=False)

    # Legacy JSON массив имён тегов. Пишется вместе с entry_tags, не читается.
    tags_json: Mapped[str] = mapped_column(Text, default="[]", nullable=False)

    # Tags relationship (many-to-many). Связи пишет TagNormalizer, удаляет каскад в БД.
    tags: Mapped[list[Tag]] = relationship(
        Tag, secondary="entry_tags", order_by=Tag.name, viewonly=True
    )

    @property
    def tag_names(self) -> list[str]:
        """Имена тегов, отсортированные по имени."""
        return [tag.name for tag in self.tags]

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, title='{self.title}', kind='{self.kind}')>"
