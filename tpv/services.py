# services.py
# Camada de serviços: CRUD das entidades e do agregado Pedido
#
# upsert = INSERT OR REPLACE (sobrescreve a linha inteira pelo id).
# update = UPDATE pelo id; não faz nada se o id não existir.
# delete de id inexistente é sucesso (0 linhas afetadas).

import json
from typing import List, Optional

from tpv.database import Database
from tpv.logger import log_event, log_warning
from tpv.models import Category, Order, OrderItem, Product, Table, User


class ProductService:
    def __init__(self, db: Database):
        self.db = db

    def list(self) -> List[Product]:
        rows = self.db.query(
            "SELECT id, name, price, category, brand, icon_type, selected_icon, uploaded_image, stock "
            "FROM products"
        )
        return [
            Product(
                id=row["id"], name=row["name"], price=row["price"], category=row["category"],
                brand=row["brand"], icon_type=row["icon_type"], selected_icon=row["selected_icon"],
                uploaded_image=row["uploaded_image"], stock=row["stock"],
            )
            for row in rows
        ]

    def _params(self, product: Product):
        return (
            product.id, product.name, product.price, product.category, product.brand,
            product.icon_type, product.selected_icon, product.uploaded_image, product.stock,
        )

    def upsert(self, product: Product) -> None:
        self.db.execute(
            "INSERT OR REPLACE INTO products "
            "(id, name, price, category, brand, icon_type, selected_icon, uploaded_image, stock) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            self._params(product),
        )
        log_event(f"Produto salvo: #{product.id} {product.name}")

    def update(self, product: Product) -> None:
        params = self._params(product)
        self.db.execute(
            "UPDATE products SET name=?, price=?, category=?, brand=?, icon_type=?, "
            "selected_icon=?, uploaded_image=?, stock=? WHERE id=?",
            params[1:] + params[:1],
        )
        log_event(f"Produto atualizado: #{product.id}")

    def delete(self, product_id: int) -> None:
        self.db.execute("DELETE FROM products WHERE id=?", (product_id,))
        log_event(f"Produto excluído: #{product_id}")


class CategoryService:
    def __init__(self, db: Database):
        self.db = db

    def list(self) -> List[Category]:
        rows = self.db.query("SELECT id, name, description, icon FROM categories")
        return [
            Category(id=row["id"], name=row["name"], description=row["description"], icon=row["icon"])
            for row in rows
        ]

    def upsert(self, category: Category) -> None:
        self.db.execute(
            "INSERT OR REPLACE INTO categories (id, name, description, icon) VALUES (?, ?, ?, ?)",
            (category.id, category.name, category.description, category.icon),
        )
        log_event(f"Categoria salva: #{category.id} {category.name}")

    def update(self, category: Category) -> None:
        self.db.execute(
            "UPDATE categories SET name=?, description=?, icon=? WHERE id=?",
            (category.name, category.description, category.icon, category.id),
        )
        log_event(f"Categoria atualizada: #{category.id}")

    def delete(self, category_id: int) -> None:
        self.db.execute("DELETE FROM categories WHERE id=?", (category_id,))
        log_event(f"Categoria excluída: #{category_id}")


class TableService:
    """Mesas. current_order_id não é chave estrangeira; pode ficar pendente."""

    def __init__(self, db: Database):
        self.db = db

    def list(self) -> List[Table]:
        rows = self.db.query("SELECT id, name, available, current_order_id FROM tables")
        return [
            Table(
                id=row["id"], name=row["name"], available=bool(row["available"]),
                current_order_id=row["current_order_id"],
            )
            for row in rows
        ]

    def upsert(self, table: Table) -> None:
        self.db.execute(
            "INSERT OR REPLACE INTO tables (id, name, available, current_order_id) VALUES (?, ?, ?, ?)",
            (table.id, table.name, int(table.available), table.current_order_id),
        )
        log_event(f"Mesa salva: #{table.id} {table.name}")

    def update(self, table: Table) -> None:
        self.db.execute(
            "UPDATE tables SET name=?, available=?, current_order_id=? WHERE id=?",
            (table.name, int(table.available), table.current_order_id, table.id),
        )
        log_event(f"Mesa atualizada: #{table.id}")

    def delete(self, table_id: int) -> None:
        self.db.execute("DELETE FROM tables WHERE id=?", (table_id,))
        log_event(f"Mesa excluída: #{table_id}")


def _load_pinned(raw: Optional[str], user_id: int) -> Optional[List[int]]:
    # Valor malformado vira lista vazia para não derrubar a listagem inteira
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        log_warning(f"pinned_product_ids inválido no usuário #{user_id}; ignorando")
        return []
    if not isinstance(value, list) or not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        log_warning(f"pinned_product_ids inválido no usuário #{user_id}; ignorando")
        return []
    return value


class UserService:
    def __init__(self, db: Database):
        self.db = db

    def list(self) -> List[User]:
        rows = self.db.query("SELECT id, name, profile_picture, pin, pinned_product_ids FROM users")
        return [
            User(
                id=row["id"], name=row["name"], pin=row["pin"], profile_picture=row["profile_picture"],
                pinned_product_ids=_load_pinned(row["pinned_product_ids"], row["id"]),
            )
            for row in rows
        ]

    def _pinned_json(self, user: User) -> Optional[str]:
        if user.pinned_product_ids is None:
            return None
        return json.dumps(list(user.pinned_product_ids))

    def upsert(self, user: User) -> None:
        self.db.execute(
            "INSERT OR REPLACE INTO users (id, name, profile_picture, pin, pinned_product_ids) "
            "VALUES (?, ?, ?, ?, ?)",
            (user.id, user.name, user.profile_picture, user.pin, self._pinned_json(user)),
        )
        log_event(f"Usuário salvo: #{user.id} {user.name}")

    def update(self, user: User) -> None:
        self.db.execute(
            "UPDATE users SET name=?, profile_picture=?, pin=?, pinned_product_ids=? WHERE id=?",
            (user.name, user.profile_picture, user.pin, self._pinned_json(user), user.id),
        )
        log_event(f"Usuário atualizado: #{user.id}")

    def delete(self, user_id: int) -> None:
        self.db.execute("DELETE FROM users WHERE id=?", (user_id,))
        log_event(f"Usuário excluído: #{user_id}")


class OrderService:
    """
    Agregado Pedido + itens. Toda escrita substitui o conjunto de itens
    inteiro (apaga e reinsere) dentro de uma única transação.
    """

    def __init__(self, db: Database):
        self.db = db

    def list(self) -> List[Order]:
        # Uma consulta de itens por pedido (N+1); aceitável para uma loja
        with self.db.locked():
            rows = self.db.query(
                "SELECT id, date, total, change, total_paid, item_count, table_number, "
                "payment_method, ticket_path, status FROM orders"
            )
            return [
                Order(
                    id=row["id"], date=row["date"], total=row["total"], change=row["change"],
                    total_paid=row["total_paid"], item_count=row["item_count"],
                    table_number=row["table_number"], payment_method=row["payment_method"],
                    ticket_path=row["ticket_path"], status=row["status"],
                    items=self.list_items(row["id"]),
                )
                for row in rows
            ]

    def list_items(self, order_id: int) -> List[OrderItem]:
        rows = self.db.query(
            "SELECT product_id, name, price, quantity, category FROM order_items WHERE order_id=?",
            (order_id,),
        )
        return [
            OrderItem(
                product_id=row["product_id"], name=row["name"], price=row["price"],
                quantity=row["quantity"], category=row["category"],
            )
            for row in rows
        ]

    def _replace_items(self, cur, order: Order) -> None:
        cur.execute("DELETE FROM order_items WHERE order_id=?", (order.id,))
        cur.executemany(
            "INSERT INTO order_items (order_id, product_id, name, price, quantity, category) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [(order.id, i.product_id, i.name, i.price, i.quantity, i.category) for i in order.items],
        )

    def _header(self, order: Order):
        return (
            order.date, order.total, order.change, order.total_paid, order.item_count,
            order.table_number, order.payment_method, order.ticket_path, order.status, order.id,
        )

    def upsert(self, order: Order) -> None:
        with self.db.transaction() as cur:
            cur.execute(
                "INSERT OR REPLACE INTO orders (date, total, change, total_paid, item_count, "
                "table_number, payment_method, ticket_path, status, id) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._header(order),
            )
            self._replace_items(cur, order)
        log_event(f"Pedido salvo: #{order.id} ({len(order.items)} itens, total {order.total:.2f})")

    def update(self, order: Order) -> None:
        with self.db.transaction() as cur:
            cur.execute(
                "UPDATE orders SET date=?, total=?, change=?, total_paid=?, item_count=?, "
                "table_number=?, payment_method=?, ticket_path=?, status=? WHERE id=?",
                self._header(order),
            )
            if cur.rowcount == 0:
                log_warning(f"Pedido #{order.id} não existe; atualização ignorada")
                return
            self._replace_items(cur, order)
        log_event(f"Pedido atualizado: #{order.id}")

    def delete(self, order_id: int) -> None:
        # Cascata manual: itens antes do pedido
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM order_items WHERE order_id=?", (order_id,))
            cur.execute("DELETE FROM orders WHERE id=?", (order_id,))
        log_event(f"Pedido excluído: #{order_id}")
