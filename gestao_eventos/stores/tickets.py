"""Ticket types and box-office sales.

``quantidade_vendida`` on a ticket is never incremented in place. After every
sale write it is recomputed as the sum of the ticket's non-cancelled sale
quantities and stored as an absolute value, so repeating the write after a
partial failure converges to the right number. On gateways with transactions
the sale write and the counter write commit together.
"""

from __future__ import annotations

import time
from typing import Any

from ..core.errors import (
    BusinessRuleError,
    CapacityBelowSoldError,
    GatewayError,
    InsufficientInventoryError,
    RecordNotFoundError,
)
from ..gateway.base import Embed, Filter, Op, Order, Query, Row
from ..models.tickets import StatusVenda, Ticket, VendaTicket
from ..views.reports import TicketSalesReport, ticket_sales_report
from .base import EntityStore, Resource, same_id, utcnow

ENTIDADE = Embed("entidade", "entidades", "entidade_id", columns=("id", "nome"))
CONTRATO = Embed(
    "contrato",
    "contratos",
    "contrato_id",
    columns=("id", "numero", "nome_evento", "inicio_realizacao"),
    embeds=(ENTIDADE,),
)
TICKET = Embed(
    "ticket",
    "tickets",
    "ticket_id",
    columns=("id", "tipo_ingresso", "preco", "contrato_id"),
    embeds=(CONTRATO,),
)


class TicketStore(EntityStore):
    module = "tickets"
    resources = (
        Resource("tickets", "tickets", Ticket, "ingresso", embeds=(CONTRATO,), parent_key="contrato_id"),
        Resource(
            "vendas",
            "bilheteria",
            VendaTicket,
            "venda",
            orders=(Order("data_venda", descending=True), Order("created_at", descending=True)),
            embeds=(TICKET,),
            parent_key="ticket_id",
        ),
    )

    # -- tickets -------------------------------------------------------------

    @property
    def tickets(self) -> list[Ticket]:
        return self.items("tickets")

    @property
    def vendas(self) -> list[VendaTicket]:
        return self.items("vendas")

    def fetch_tickets(self) -> list[Ticket]:
        return self.fetch_all("tickets")

    def create_ticket(self, payload: Row) -> Ticket:
        return self.create("tickets", {**payload, "quantidade_vendida": 0})

    def update_ticket(self, ticket_id: Any, patch: Row) -> Ticket:
        """Update a ticket type; capacity may not drop below what is already sold."""
        # The sold counter is owned by the sale operations.
        clean = {key: value for key, value in patch.items() if key != "quantidade_vendida"}
        if clean.get("quantidade_disponivel") is None:
            return self.update("tickets", ticket_id, clean)
        action = "tickets.update_ticket"
        started = time.monotonic()
        capacity = int(clean["quantidade_disponivel"])
        with self._tracking(), self.gateway.transaction():
            try:
                sold = self._sold_quantity(ticket_id)
            except GatewayError as exc:
                self._fail(action, exc, started, record_id=ticket_id)
                raise
            if capacity < sold:
                self._reject(action, CapacityBelowSoldError(capacity, sold), record_id=ticket_id)
            return self.update("tickets", ticket_id, clean)

    def delete_ticket(self, ticket_id: Any) -> None:
        self.delete("tickets", ticket_id)

    def tickets_by_contract(self, contrato_id: Any) -> list[Ticket]:
        return self.by_parent_id("tickets", contrato_id)

    # -- sales ---------------------------------------------------------------

    def fetch_sales(self) -> list[VendaTicket]:
        return self.fetch_all("vendas")

    def sales_by_ticket(self, ticket_id: Any) -> list[VendaTicket]:
        return self.by_parent_id("vendas", ticket_id)

    def sales_by_contract(self, contrato_id: Any) -> list[VendaTicket]:
        return [
            venda
            for venda in self.vendas
            if venda.ticket is not None and same_id(venda.ticket.contrato_id, contrato_id)
        ]

    def _read_ticket(self, ticket_id: Any) -> Ticket:
        try:
            row = self.gateway.select_one(self.resource("tickets").by_id(ticket_id))
        except GatewayError as exc:
            if exc.status_code in {404, 406}:
                raise RecordNotFoundError("Ingresso não encontrado") from exc
            raise
        return self.resource("tickets").parse(row)

    def _read_sale(self, venda_id: Any) -> VendaTicket:
        try:
            row = self.gateway.select_one(Query("bilheteria").eq("id", venda_id))
        except GatewayError as exc:
            if exc.status_code in {404, 406}:
                raise RecordNotFoundError("Venda não encontrada") from exc
            raise
        return self.resource("vendas").parse(row)

    def _sold_quantity(self, ticket_id: Any) -> int:
        rows = self.gateway.select(
            Query(
                "bilheteria",
                columns=("id", "quantidade"),
                filters=(
                    Filter("ticket_id", Op.EQ, ticket_id),
                    Filter("status", Op.NEQ, StatusVenda.CANCELADO.value),
                ),
            )
        )
        return sum(int(row["quantidade"]) for row in rows)

    def _write_sold_counter(self, ticket_id: Any) -> Ticket:
        sold = self._sold_quantity(ticket_id)
        rows = self.gateway.update(
            "tickets",
            {"quantidade_vendida": sold, "updated_at": utcnow()},
            [Filter("id", Op.EQ, ticket_id)],
            returning=self.resource("tickets").query(),
        )
        return self.resource("tickets").parse_written(rows)

    @staticmethod
    def _counts(status: Any) -> bool:
        value = getattr(status, "value", status)
        return value != StatusVenda.CANCELADO.value

    def record_sale(self, payload: Row) -> VendaTicket:
        """Insert a sale after checking the ticket still has room for it.

        Raises InsufficientInventoryError (carrying the exact remaining
        quantity) before any write when the request does not fit.
        """
        action = "vendas.record_sale"
        started = time.monotonic()
        ticket_id = payload.get("ticket_id")
        quantidade = int(payload.get("quantidade") or 0)
        with self._tracking():
            try:
                if quantidade <= 0:
                    raise BusinessRuleError("Quantidade deve ser maior que zero")
                with self.gateway.transaction():
                    ticket = self._read_ticket(ticket_id)
                    remaining = ticket.quantidade_disponivel - self._sold_quantity(ticket_id)
                    if self._counts(payload.get("status", StatusVenda.CONFIRMADO)) and quantidade > remaining:
                        raise InsufficientInventoryError(max(remaining, 0))
                    rows = self.gateway.insert(
                        "bilheteria",
                        [payload],
                        returning=self.resource("vendas").query(),
                    )
                    ticket = self._write_sold_counter(ticket_id)
                    venda = self.resource("vendas").parse_written(rows)
            except (GatewayError, BusinessRuleError) as exc:
                self._fail(action, exc, started, ticket_id=ticket_id, quantidade=quantidade)
                raise
        self._prepend("vendas", venda)
        self._replace("tickets", ticket)
        self.state.set(error=None)
        self._log(action, "success", started, record_id=venda.id, ticket_id=ticket_id, vendidos=ticket.quantidade_vendida)
        return venda

    def update_sale(self, venda_id: Any, patch: Row) -> VendaTicket:
        """Update a sale; quantity and status changes are re-checked against capacity."""
        action = "vendas.update_sale"
        started = time.monotonic()
        with self._tracking():
            try:
                with self.gateway.transaction():
                    current = self._read_sale(venda_id)
                    ticket_id = patch.get("ticket_id", current.ticket_id)
                    quantidade = int(patch.get("quantidade", current.quantidade))
                    status = patch.get("status", current.status)
                    if quantidade <= 0:
                        raise BusinessRuleError("Quantidade deve ser maior que zero")
                    if self._counts(status):
                        ticket = self._read_ticket(ticket_id)
                        sold = self._sold_quantity(ticket_id)
                        if same_id(ticket_id, current.ticket_id) and self._counts(current.status):
                            sold -= current.quantidade
                        remaining = ticket.quantidade_disponivel - sold
                        if quantidade > remaining:
                            raise InsufficientInventoryError(max(remaining, 0))
                    rows = self.gateway.update(
                        "bilheteria",
                        {**patch, "updated_at": utcnow()},
                        [Filter("id", Op.EQ, venda_id)],
                        returning=self.resource("vendas").query(),
                    )
                    touched = [self._write_sold_counter(ticket_id)]
                    if not same_id(ticket_id, current.ticket_id):
                        touched.append(self._write_sold_counter(current.ticket_id))
                    venda = self.resource("vendas").parse_written(rows)
            except (GatewayError, BusinessRuleError) as exc:
                self._fail(action, exc, started, record_id=venda_id)
                raise
        self._replace("vendas", venda)
        for ticket in touched:
            self._replace("tickets", ticket)
        self.state.set(error=None)
        self._log(action, "success", started, record_id=venda_id)
        return venda

    def cancel_sale(self, venda_id: Any) -> VendaTicket:
        return self.update_sale(venda_id, {"status": StatusVenda.CANCELADO.value})

    def delete_sale(self, venda_id: Any) -> None:
        action = "vendas.delete_sale"
        started = time.monotonic()
        with self._tracking():
            try:
                with self.gateway.transaction():
                    current = self._read_sale(venda_id)
                    self.gateway.delete("bilheteria", [Filter("id", Op.EQ, venda_id)])
                    ticket = self._write_sold_counter(current.ticket_id)
            except (GatewayError, BusinessRuleError) as exc:
                self._fail(action, exc, started, record_id=venda_id)
                raise
        self._remove("vendas", venda_id)
        self._replace("tickets", ticket)
        self.state.set(error=None)
        self._log(action, "success", started, record_id=venda_id, ticket_id=current.ticket_id)

    def reconcile_sold_counter(self, ticket_id: Any) -> Ticket:
        """Rewrite a ticket's sold counter from its recorded sales."""
        action = "tickets.reconcile_sold_counter"
        started = time.monotonic()
        with self._tracking():
            try:
                ticket = self._write_sold_counter(ticket_id)
            except (GatewayError, BusinessRuleError) as exc:
                self._fail(action, exc, started, record_id=ticket_id)
                raise
        self._replace("tickets", ticket)
        self._log(action, "success", started, record_id=ticket_id, vendidos=ticket.quantidade_vendida)
        return ticket

    def sales_report(self, contrato_id: Any | None = None) -> TicketSalesReport:
        return ticket_sales_report(self.tickets, self.vendas, contrato_id=contrato_id)
