"""
Domain exceptions for the persistence layer.

Каждая операция сервиса либо возвращает значение, либо бросает ровно одно из
этих исключений. HTTP слой (api/errors.py) превращает их в ответы с кодами.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

P = ParamSpec("P")
R = TypeVar("R")


class DokodemoError(Exception):
    """Base exception for all domain errors."""

    code = "ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(DokodemoError):
    """Запрос отклонён: неизвестная категория, неверный статус, пустое имя."""

    code = "VALIDATION_ERROR"


class NotFoundError(DokodemoError):
    """Сущность с таким ID не существует."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id {resource_id} not found")


class ConflictError(DokodemoError):
    """Нарушена уникальность имени при прямом создании/переименовании."""

    code = "ALREADY_EXISTS"

    def __init__(self, resource: str, name: str):
        self.resource = resource
        self.name = name
        super().__init__(f"{resource} '{name}' already exists", field="name")


class StorageError(DokodemoError):
    """Ошибка соединения или транзакции. Ядро не повторяет запрос само."""

    code = "STORAGE_ERROR"


class MigrationError(DokodemoError):
    """Миграция не применилась. Процесс не должен начинать обслуживать запросы."""

    code = "MIGRATION_ERROR"


def handle_storage_errors(
    function: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    """
    Декоратор для методов сервисов: ошибки SQLAlchemy -> StorageError.

    Доменные исключения проходят как есть. IntegrityError, который сервис не
    обработал сам (например, гонка при уникальном имени), тоже становится
    StorageError - нарушение ссылочной целостности не замалчивается.
    """

    @wraps(function)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await function(*args, **kwargs)
        except DokodemoError:
            raise
        except IntegrityError as e:
            raise StorageError(f"Data integrity violation: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Database operation failed: {e}") from e

    return wrapper
