from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

from ..core.errors import BusinessRuleError, GatewayError
from ..views.notifications import NotificationCenter, user_message
from .base import FormResult


class FormSchema(Protocol):
    @classmethod
    def validate_input(cls, values: Mapping[str, Any], context: Mapping[str, Any] | None = None) -> FormResult: ...

    @classmethod
    def initial_values(cls, record: Any | None = None) -> dict[str, Any]: ...


class FormDialog:
    """Modal editor for one record.

    Validation runs before any store call. A failed save keeps the dialog open
    with the entered values; a successful one notifies, calls ``on_success``
    and closes.
    """

    def __init__(
        self,
        schema: FormSchema,
        notifications: NotificationCenter,
        create: Callable[[dict[str, Any]], Any],
        update: Callable[[Any, dict[str, Any]], Any] | None = None,
        on_success: Callable[[Any], None] | None = None,
        context: Callable[[], Mapping[str, Any]] | None = None,
        created_message: str = "Registro criado com sucesso",
        updated_message: str = "Registro atualizado com sucesso",
    ) -> None:
        self.schema = schema
        self.notifications = notifications
        self._create = create
        self._update = update
        self.on_success = on_success
        self._context = context
        self.created_message = created_message
        self.updated_message = updated_message
        self.is_open = False
        self.record_id: Any | None = None
        self.values: dict[str, Any] = {}
        self.field_errors: dict[str, str] = {}
        self.submitting = False

    @property
    def is_editing(self) -> bool:
        return self.record_id is not None

    def open(self, record: Any | None = None) -> dict[str, Any]:
        if isinstance(record, Mapping):
            self.record_id = record.get("id")
        else:
            self.record_id = getattr(record, "id", None)
        self.values = self.schema.initial_values(record)
        self.field_errors = {}
        self.is_open = True
        return dict(self.values)

    def set_value(self, name: str, value: Any) -> None:
        self.values[name] = value
        self.field_errors.pop(name, None)

    def close(self) -> None:
        self.is_open = False
        self.record_id = None
        self.values = {}
        self.field_errors = {}

    def submit(self) -> Any | None:
        context = self._context() if self._context is not None else None
        result = self.schema.validate_input(self.values, context)
        if not result.is_valid:
            self.field_errors = dict(result.field_errors)
            return None
        if self.is_editing and self._update is None:
            raise RuntimeError("This dialog does not support editing")
        self.submitting = True
        try:
            if self.is_editing:
                saved = self._update(self.record_id, result.values)
            else:
                saved = self._create(result.values)
        except (GatewayError, BusinessRuleError) as exc:
            self.notifications.error(user_message(exc))
            return None
        finally:
            self.submitting = False
        self.notifications.success(self.updated_message if self.is_editing else self.created_message)
        if self.on_success is not None:
            self.on_success(saved)
        self.close()
        return saved
