# transfer.py
# Exportação, importação e limpeza completa dos dados

import json
from typing import Any, Mapping

from tpv.database import Database
from tpv.errors import ParseError, StorageError
from tpv.logger import log_error, log_event
from tpv.models import Snapshot
from tpv.services import CategoryService, OrderService, ProductService, TableService, UserService

# Ordem de exclusão respeita dependências (itens antes dos pedidos)
CLEAR_ORDER = ("order_items", "orders", "products", "categories", "tables", "users")


class BulkTransfer:
    def __init__(self, db: Database):
        self.db = db
        self.products = ProductService(db)
        self.categories = CategoryService(db)
        self.orders = OrderService(db)
        self.tables = TableService(db)
        self.users = UserService(db)

    def export(self) -> Snapshot:
        """Fotografia do banco inteiro; o lock fica retido durante toda a leitura."""
        with self.db.locked():
            snapshot = Snapshot(
                products=self.products.list(),
                categories=self.categories.list(),
                orders=self.orders.list(),
                tables=self.tables.list(),
                users=self.users.list(),
            )
        log_event(
            f"Exportação: {len(snapshot.products)} produtos, {len(snapshot.categories)} categorias, "
            f"{len(snapshot.orders)} pedidos, {len(snapshot.tables)} mesas, {len(snapshot.users)} usuários"
        )
        return snapshot

    def import_snapshot(self, snapshot: Snapshot) -> None:
        """
        Aplica produtos, categorias, pedidos e, se presentes, mesas e usuários.

        Cada item é um upsert independente: reimportar o mesmo snapshot é
        idempotente, e uma falha no meio mantém o que já foi aplicado.
        """
        for product in snapshot.products:
            self.products.upsert(product)
        for category in snapshot.categories:
            self.categories.upsert(category)
        for order in snapshot.orders:
            self.orders.upsert(order)
        if snapshot.tables is not None:
            for table in snapshot.tables:
                self.tables.upsert(table)
        if snapshot.users is not None:
            for user in snapshot.users:
                self.users.upsert(user)
        log_event(
            f"Importação concluída: {len(snapshot.products)} produtos, {len(snapshot.categories)} categorias, "
            f"{len(snapshot.orders)} pedidos"
            + ("" if snapshot.tables is None else f", {len(snapshot.tables)} mesas")
            + ("" if snapshot.users is None else f", {len(snapshot.users)} usuários")
        )

    def import_data(self, data: Mapping[str, Any]) -> None:
        """Importa a partir do dicionário camelCase enviado pela interface."""
        self.import_snapshot(Snapshot.from_dict(data))

    def clear_all(self) -> None:
        """Apaga todas as linhas de todas as tabelas de dados (reset de fábrica)."""
        with self.db.transaction() as cur:
            for table in CLEAR_ORDER:
                cur.execute(f"DELETE FROM {table}")
        log_event("Todos os dados foram apagados")

    def export_to_file(self, path: str) -> str:
        data = self.export().to_dict()
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            log_error(f"Erro ao gravar exportação em {path}", e)
            raise StorageError(f"Erro ao gravar exportação: {e}") from e
        log_event(f"Exportação gravada em {path}")
        return path

    def import_from_file(self, path: str) -> None:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            log_error(f"Erro ao ler exportação {path}", e)
            raise StorageError(f"Erro ao ler exportação: {e}") from e
        except ValueError as e:
            raise ParseError(f"Arquivo de exportação inválido: {e}") from e
        # Valida o documento inteiro antes de gravar qualquer coisa
        snapshot = Snapshot.from_dict(data)
        self.import_snapshot(snapshot)
