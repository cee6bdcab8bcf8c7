from __future__ import annotations

import re

from pydantic import Field, ValidationInfo, field_validator

from .base import Email, FormModel

PASSWORD_MISMATCH = "As senhas não coincidem"
WEAK_PASSWORD = "A senha deve conter pelo menos uma letra minúscula, uma maiúscula e um número"


class UserCreateForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "nome:string_too_short": "Nome deve ter pelo menos 2 caracteres",
        "email": "Email é obrigatório",
        "password": "Senha é obrigatória",
        "password:string_too_short": "Senha deve ter pelo menos 6 caracteres",
    }
    fk_fields = ("grupo_id",)

    nome: str = Field(min_length=2)
    email: Email
    password: str = Field(min_length=6)
    grupo_id: int | None = None
    ativo: bool = True


class UserUpdateForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "nome:string_too_short": "Nome deve ter pelo menos 2 caracteres",
        "email": "Email é obrigatório",
    }
    fk_fields = ("grupo_id",)

    nome: str = Field(min_length=2)
    email: Email
    grupo_id: int | None = None
    ativo: bool = True


class GroupForm(FormModel):
    messages = {
        "nome": "Nome é obrigatório",
        "nome:string_too_short": "Nome deve ter pelo menos 2 caracteres",
        "descricao": "Descrição é obrigatória",
        "descricao:string_too_short": "Descrição deve ter pelo menos 5 caracteres",
    }

    nome: str = Field(min_length=2)
    descricao: str = Field(min_length=5)
    ativo: bool = True


class PasswordResetForm(FormModel):
    messages = {
        "new_password": "Senha é obrigatória",
        "new_password:string_too_short": "Senha deve ter pelo menos 6 caracteres",
        "confirm_password": "Confirmação de senha é obrigatória",
    }
    transient_fields = frozenset({"confirm_password"})

    new_password: str = Field(min_length=6)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def _matches(cls, value: str, info: ValidationInfo) -> str:
        if "new_password" in info.data and value != info.data["new_password"]:
            raise ValueError(PASSWORD_MISMATCH)
        return value


class PasswordChangeForm(PasswordResetForm):
    """First-login password change: stronger rule than an admin reset."""

    messages = {
        **PasswordResetForm.messages,
        "new_password:string_too_short": "A senha deve ter pelo menos 8 caracteres",
    }

    new_password: str = Field(min_length=8)

    @field_validator("new_password")
    @classmethod
    def _strong(cls, value: str) -> str:
        if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
            raise ValueError(WEAK_PASSWORD)
        return value
