from .listing import ALL, OTHER, DeleteConfirmation, ListFilter, TabPartition, paginate, sort_rows, visible_rows
from .notifications import Notification, NotificationCenter, NotificationKind, user_message
from .reports import (
    FALLBACK_LABEL,
    GroupTotal,
    Regime,
    channel_sales_report,
    contract_totals,
    dashboard_kpis,
    financial_summary,
    group_totals,
    percentage_of,
    ticket_sales_report,
)
from .view_state import ListViewState, ListViewStatus, resolve_view_state

__all__ = [
    "ALL",
    "FALLBACK_LABEL",
    "OTHER",
    "DeleteConfirmation",
    "GroupTotal",
    "ListFilter",
    "ListViewState",
    "ListViewStatus",
    "Notification",
    "NotificationCenter",
    "NotificationKind",
    "Regime",
    "TabPartition",
    "channel_sales_report",
    "contract_totals",
    "dashboard_kpis",
    "financial_summary",
    "group_totals",
    "paginate",
    "percentage_of",
    "resolve_view_state",
    "sort_rows",
    "ticket_sales_report",
    "user_message",
    "visible_rows",
]
