from .base import EMAIL_REGEX, NONE_OPTION, FormModel, FormResult, field_errors_from
from .box_office import CanalForm, VendaCanalForm
from .dialog import FormDialog
from .financial import CategoriaForm, DespesaForm, FechamentoForm, MovementForm, ReceitaForm
from .permissions import GroupPermissionEditor
from .registry import ContratoForm, EmpresaForm, EntidadeForm, EspacoForm, ProjetoForm
from .tickets import TicketForm, VendaForm
from .users import GroupForm, PasswordChangeForm, PasswordResetForm, UserCreateForm, UserUpdateForm

__all__ = [
    "EMAIL_REGEX",
    "NONE_OPTION",
    "CanalForm",
    "CategoriaForm",
    "ContratoForm",
    "DespesaForm",
    "EmpresaForm",
    "EntidadeForm",
    "EspacoForm",
    "FechamentoForm",
    "FormDialog",
    "FormModel",
    "FormResult",
    "GroupForm",
    "GroupPermissionEditor",
    "MovementForm",
    "PasswordChangeForm",
    "PasswordResetForm",
    "ProjetoForm",
    "ReceitaForm",
    "TicketForm",
    "UserCreateForm",
    "UserUpdateForm",
    "VendaCanalForm",
    "VendaForm",
    "field_errors_from",
]
