"""
Pydantic схемы для API.

Схемы проверяют только форму запроса (типы, обязательные поля). Правила
предметной области - существует ли категория, допустим ли статус - проверяют
сервисы, чтобы HTTP и webhook получали одинаковые ошибки.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..models import EntryStatus

# ============================================================================
# ENTRY SCHEMAS
# ============================================================================


class EntryCreate(BaseModel):
    """
    Схема для создания записи (POST /entries).

    Пример запроса:
    {
        "title": "Dune",
        "kind": "book",
        "status": "in_progress",
        "tags": ["sci-fi", "favorite"]
    }
    """

    title: str = Field(..., description="Название")
    kind: str = Field(..., description="Имя категории (GET /categories)")
    status: str = Field(EntryStatus.PLANNED.value, description="planned | in_progress | completed | dropped")
    notes: str = Field("", description="Заметки")
    url: str | None = Field(None, description="Ссылка")
    source: str = Field("manual", description="Источник записи")
    tags: list[str] = Field(default_factory=list, description="Имена тегов")


class EntryUpdate(BaseModel):
    """
    Схема для обновления записи (PATCH /entries/{id}).

    Все поля опциональные. Переданный tags полностью заменяет прежний набор.
    """

    title: str | None = None
    kind: str | None = None
    status: str | None = None
    notes: str | None = None
    url: str | None = None
    source: str | None = None
    tags: list[str] | None = None


class EntryResponse(BaseModel):
    """Запись в ответе. tags - имена тегов, отсортированные по имени."""

    id: str
    title: str
    kind: str
    status: EntryStatus
    notes: str
    url: str | None
    source: str
    # ORM объект отдаёт имена через Entry.tag_names, dict (повторная валидация FastAPI) - через tags
    tags: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("tag_names", "tags")
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuickCaptureRequest(BaseModel):
    """
    Схема для быстрой заметки (POST /quick-capture).

    Пример:
    {
        "text": "Посмотреть доклад https://example.com/talk"
    }

    Всё, кроме text, выводится автоматически (см. services/capture.py).
    """

    text: str = Field(..., description="Текст заметки")
    title: str | None = None
    kind: str | None = None
    status: str | None = None
    url: str | None = None
    source: str | None = None
    tags: list[str] | None = None


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryCreate(BaseModel):
    """
    Схема для создания категории (POST /categories).

    Пример:
    {
        "name": "podcast",
        "description": "Аудио выпуски"
    }
    """

    name: str = Field(..., description="Уникальное имя категории")
    description: str = Field("", description="Описание")


class CategoryUpdate(BaseModel):
    """Схема для обновления категории. Все поля опциональные."""

    name: str | None = None
    description: str | None = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(BaseModel):
    """Схема для создания тега (POST /tags)."""

    name: str = Field(..., description="Уникальное имя тега")


class TagResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagWithUsage(TagResponse):
    """
    Тег с количеством использований.

    Используется для GET /tags/usage
    """

    usage_count: int = Field(..., description="Количество записей с этим тегом")


# ============================================================================
# TELEGRAM SCHEMAS
# ============================================================================


class TelegramChat(BaseModel):
    id: int


class TelegramMessage(BaseModel):
    text: str | None = None
    caption: str | None = None
    chat: TelegramChat


class TelegramUpdate(BaseModel):
    """
    Telegram Bot API update. Остальные поля update игнорируются.

    Пример:
    {
        "update_id": 1,
        "message": {"text": "https://example.com", "chat": {"id": 42}}
    }
    """

    message: TelegramMessage | None = None
    edited_message: TelegramMessage | None = None


class AcceptedResponse(BaseModel):
    status: str = "accepted"
    entry_id: str


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class HealthResponse(BaseModel):
    status: str
    database: str
    schema_revision: str | None = None


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {
        "field": "kind",
        "message": "invalid kind 'podcast': no such category"
    }
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Коды:
    - VALIDATION_ERROR: ошибка валидации полей или правил
    - NOT_FOUND: ресурс не найден
    - ALREADY_EXISTS: имя уже занято
    - UNAUTHORIZED: неверный или отсутствующий ключ
    - STORAGE_ERROR: база данных недоступна
    - INTERNAL_ERROR: внутренняя ошибка сервера
    """

    code: str = Field(..., description="Код ошибки (VALIDATION_ERROR, NOT_FOUND, etc.)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Entry with id 3f2b... not found",
            "details": null
        }
    }
    """

    error: ErrorBody
