"""
Тесты для quick capture и Telegram.

Разбор текста проверяется без БД, создание записи - через test_db.
"""

import pytest

from dokodemo.core.errors import ValidationError
from dokodemo.models import EntryStatus
from dokodemo.services import CaptureService, extract_url_from_text, summarize_title


# ============================================================================
# TEXT HELPERS
# ============================================================================


def test_summarize_title():
    """Test: первая строка, обрезанная по краям и до 80 символов."""
    assert summarize_title("  Dune  \nперечитать летом") == "Dune"
    assert summarize_title("x" * 100) == "x" * 80
    assert summarize_title("   ") == "quick note"
    assert summarize_title("\nвторая строка") == "quick note"


def test_extract_url_from_text():
    """Test: первая http(s) ссылка без закрывающей пунктуации."""
    assert extract_url_from_text("см. (https://example.com/a).") == "https://example.com/a"
    assert (
        extract_url_from_text("http://one.example, https://two.example")
        == "http://one.example"
    )
    assert extract_url_from_text("ftp://example.com и example.com") is None


# ============================================================================
# QUICK CAPTURE
# ============================================================================


@pytest.mark.asyncio
async def test_quick_capture_defaults(test_db):
    """Test: kind=note, status=planned, source=quick-capture, текст в notes."""
    text = "Посмотреть доклад https://example.com/talk\nпро SQLite"

    entry = await CaptureService(test_db).quick_capture(text)

    assert entry.title == "Посмотреть доклад https://example.com/talk"
    assert entry.kind == "note"
    assert entry.status == EntryStatus.PLANNED
    assert entry.source == "quick-capture"
    assert entry.url == "https://example.com/talk"
    assert entry.notes == text
    assert entry.tag_names == []


@pytest.mark.asyncio
async def test_quick_capture_explicit_fields_win(test_db):
    """Test: явно переданные поля не выводятся из текста."""
    entry = await CaptureService(test_db).quick_capture(
        "https://example.com/paper",
        title="Статья про LSM",
        kind="article",
        status="in_progress",
        url="https://example.com/other",
        tags=["db"],
    )

    assert entry.title == "Статья про LSM"
    assert entry.kind == "article"
    assert entry.status == EntryStatus.IN_PROGRESS
    assert entry.url == "https://example.com/other"
    assert entry.tag_names == ["db"]


@pytest.mark.asyncio
async def test_quick_capture_unknown_kind(test_db):
    """Test: quick capture проходит ту же проверку категории."""
    with pytest.raises(ValidationError):
        await CaptureService(test_db).quick_capture("text", kind="podcast")


# ============================================================================
# TELEGRAM
# ============================================================================


@pytest.mark.asyncio
async def test_telegram_message(test_db):
    """Test: source=telegram:<chat id>."""
    update = {"update_id": 1, "message": {"text": "Dune\nкупить", "chat": {"id": 42}}}

    entry = await CaptureService(test_db).capture_telegram_update(update)

    assert entry.title == "Dune"
    assert entry.source == "telegram:42"
    assert entry.kind == "note"


@pytest.mark.asyncio
async def test_telegram_edited_message_caption(test_db):
    """Test: edited_message и caption вместо text."""
    update = {
        "update_id": 2,
        "edited_message": {"caption": "фото https://example.com/p", "chat": {"id": -100}},
    }

    entry = await CaptureService(test_db).capture_telegram_update(update)

    assert entry.url == "https://example.com/p"
    assert entry.source == "telegram:-100"


@pytest.mark.asyncio
async def test_telegram_update_without_text(test_db):
    """Test: нет сообщения или нет текста -> ValidationError."""
    service = CaptureService(test_db)

    with pytest.raises(ValidationError, match="message payload"):
        await service.capture_telegram_update({"update_id": 3})

    with pytest.raises(ValidationError, match="does not contain text"):
        await service.capture_telegram_update({"message": {"chat": {"id": 1}}})
