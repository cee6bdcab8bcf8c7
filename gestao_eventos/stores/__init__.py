from .base import EntityStore, Resource
from .box_office import BoxOfficeStore
from .financial import FinancialStore
from .registry import ContractStore, EntidadeStore, ProjectStore, VenueStore
from .session import SessionStore
from .state import StateContainer
from .tickets import TicketStore
from .users import UserAdminStore

__all__ = [
    "BoxOfficeStore",
    "ContractStore",
    "EntidadeStore",
    "EntityStore",
    "FinancialStore",
    "ProjectStore",
    "Resource",
    "SessionStore",
    "StateContainer",
    "TicketStore",
    "UserAdminStore",
    "VenueStore",
]
