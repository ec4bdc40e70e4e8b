"""Quick capture: turn a free-form text (or a Telegram message) into an entry."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ValidationError
from ..models import Entry, EntryStatus
from .entry import EntryService

TITLE_MAX_LENGTH = 80
DEFAULT_TITLE = "quick note"
CAPTURE_KIND = "note"
URL_TRAILING_PUNCTUATION = ")]},.;"


def summarize_title(text: str) -> str:
    """
    Заголовок из текста: первая строка без пробелов по краям, не длиннее 80 символов.

    Пример:
        summarize_title("Dune\\nперечитать летом")  # "Dune"
        summarize_title("   ")                      # "quick note"
    """
    first_line = text.split("\n", 1)[0].strip()
    return first_line[:TITLE_MAX_LENGTH] or DEFAULT_TITLE


def extract_url_from_text(text: str) -> str | None:
    """
    Первая ссылка http:// или https:// в тексте.

    Закрывающие скобки и знаки препинания в конце отрезаются:
    "(см. https://example.com/a)." -> "https://example.com/a"
    """
    for part in text.split():
        if part.startswith(("http://", "https://")):
            return part.rstrip(URL_TRAILING_PUNCTUATION)
    return None


class CaptureService:
    """Создание записей из сырого текста. Использует тот же путь, что и EntryService."""

    def __init__(self, db: AsyncSession):
        self.entry_service = EntryService(db)

    async def quick_capture(
        self,
        text: str,
        title: str | None = None,
        kind: str | None = None,
        status: str | EntryStatus | None = None,
        url: str | None = None,
        source: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> Entry:
        """
        Создать запись из текста заметки.

        Всё, что не передано явно, выводится из текста:
        title - summarize_title(text), url - extract_url_from_text(text).
        По умолчанию kind="note", status="planned", source="quick-capture".
        Сам текст сохраняется в notes.
        """
        return await self.entry_service.create_entry(
            title=title or summarize_title(text),
            kind=kind or CAPTURE_KIND,
            status=status or EntryStatus.PLANNED,
            notes=text,
            url=url or extract_url_from_text(text),
            source=source or "quick-capture",
            tags=tags,
        )

    async def capture_telegram_update(self, update: dict) -> Entry:
        """
        Создать запись из Telegram update (message или edited_message).

        Raises:
            ValidationError: В update нет сообщения или у сообщения нет текста/подписи
        """
        message = update.get("message") or update.get("edited_message")
        if not message:
            raise ValidationError("telegram update does not contain a message payload")

        text = message.get("text")
        if text is None:
            text = message.get("caption")
        if text is None:
            raise ValidationError("telegram message does not contain text")

        chat_id = (message.get("chat") or {}).get("id")
        return await self.entry_service.create_entry(
            title=summarize_title(text),
            kind=CAPTURE_KIND,
            status=EntryStatus.PLANNED,
            notes=text,
            url=extract_url_from_text(text),
            source=f"telegram:{chat_id}",
            tags=[],
        )
