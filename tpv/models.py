# models.py
# Definições de dataclasses e modelos de domínio
#
# Os dicionários trocados com a interface usam chaves camelCase.

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from tpv.errors import ParseError


def _require(data: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in data or data[key] is None:
        raise ParseError(f"{kind}: campo obrigatório ausente '{key}'")
    return data[key]


def _ensure_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ParseError(f"{kind}: esperado um objeto, recebido {type(data).__name__}")
    return data


def _as_strict_int(value: Any, key: str, kind: str) -> int:
    # bool é subclasse de int; floats não são truncados
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"{kind}: campo '{key}' deve ser inteiro ({value!r})")
    return value


def _as_bool(value: Any, key: str, kind: str) -> bool:
    if not isinstance(value, bool):
        raise ParseError(f"{kind}: campo '{key}' deve ser booleano ({value!r})")
    return value


def _as_int(value: Any, key: str, kind: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"{kind}: campo '{key}' inválido ({value!r})") from e


def _as_float(value: Any, key: str, kind: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"{kind}: campo '{key}' inválido ({value!r})") from e


@dataclass
class Product:
    id: int
    name: str
    price: float
    category: str
    brand: Optional[str] = None
    icon_type: Optional[str] = None
    selected_icon: Optional[str] = None
    uploaded_image: Optional[str] = None
    stock: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "brand": self.brand,
            "iconType": self.icon_type,
            "selectedIcon": self.selected_icon,
            "uploadedImage": self.uploaded_image,
            "stock": self.stock,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        data = _ensure_mapping(data, "Produto")
        stock = data.get("stock")
        return cls(
            id=_as_int(_require(data, "id", "Produto"), "id", "Produto"),
            name=str(_require(data, "name", "Produto")),
            price=_as_float(_require(data, "price", "Produto"), "price", "Produto"),
            category=str(_require(data, "category", "Produto")),
            brand=data.get("brand"),
            icon_type=data.get("iconType"),
            selected_icon=data.get("selectedIcon"),
            uploaded_image=data.get("uploadedImage"),
            stock=None if stock is None else _as_int(stock, "stock", "Produto"),
        )


@dataclass
class Category:
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description, "icon": self.icon}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Category":
        data = _ensure_mapping(data, "Categoria")
        return cls(
            id=_as_int(_require(data, "id", "Categoria"), "id", "Categoria"),
            name=str(_require(data, "name", "Categoria")),
            description=data.get("description"),
            icon=data.get("icon"),
        )


@dataclass
class OrderItem:
    """
    Cópia do produto no momento da venda (nome, preço e categoria).
    Alterações posteriores no Product não afetam pedidos antigos.
    """
    product_id: int
    name: str
    price: float
    quantity: int = 1
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrderItem":
        data = _ensure_mapping(data, "Item do pedido")
        # "id" é o id do produto; "productId" também é aceito na entrada
        product_id = data.get("id", data.get("productId"))
        if product_id is None:
            raise ParseError("Item do pedido: campo obrigatório ausente 'id'")
        return cls(
            product_id=_as_int(product_id, "id", "Item do pedido"),
            name=str(_require(data, "name", "Item do pedido")),
            price=_as_float(_require(data, "price", "Item do pedido"), "price", "Item do pedido"),
            quantity=_as_int(data.get("quantity", 1), "quantity", "Item do pedido"),
            category=data.get("category"),
        )


@dataclass
class Order:
    id: int
    date: str
    total: float
    change: float = 0.0
    total_paid: float = 0.0
    item_count: int = 0
    table_number: int = 0
    payment_method: str = "cash"
    ticket_path: Optional[str] = None
    status: str = "inProgress"
    items: List[OrderItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "total": self.total,
            "change": self.change,
            "totalPaid": self.total_paid,
            "itemCount": self.item_count,
            "tableNumber": self.table_number,
            "paymentMethod": self.payment_method,
            "ticketPath": self.ticket_path,
            "status": self.status,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Order":
        data = _ensure_mapping(data, "Pedido")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ParseError("Pedido: 'items' deve ser uma lista")
        return cls(
            id=_as_int(_require(data, "id", "Pedido"), "id", "Pedido"),
            date=str(_require(data, "date", "Pedido")),
            total=_as_float(_require(data, "total", "Pedido"), "total", "Pedido"),
            change=_as_float(data.get("change", 0.0), "change", "Pedido"),
            total_paid=_as_float(data.get("totalPaid", 0.0), "totalPaid", "Pedido"),
            item_count=_as_int(data.get("itemCount", 0), "itemCount", "Pedido"),
            table_number=_as_int(data.get("tableNumber", 0), "tableNumber", "Pedido"),
            payment_method=data.get("paymentMethod") or "cash",
            ticket_path=data.get("ticketPath"),
            status=data.get("status") or "inProgress",
            items=[OrderItem.from_dict(item) for item in items],
        )


@dataclass
class Table:
    """
    Mesa do salão. current_order_id é uma referência solta: pode apontar
    para um pedido já excluído, e isso é um estado válido.
    """
    id: int
    name: str
    available: bool = False
    current_order_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "available": self.available,
            "currentOrderId": self.current_order_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Table":
        data = _ensure_mapping(data, "Mesa")
        current = data.get("currentOrderId")
        return cls(
            id=_as_int(_require(data, "id", "Mesa"), "id", "Mesa"),
            name=str(_require(data, "name", "Mesa")),
            available=False if data.get("available") is None else _as_bool(data["available"], "available", "Mesa"),
            current_order_id=None if current is None else _as_int(current, "currentOrderId", "Mesa"),
        )


@dataclass
class User:
    id: int
    name: str
    pin: str
    profile_picture: Optional[str] = None
    pinned_product_ids: Optional[List[int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "profilePicture": self.profile_picture,
            "pin": self.pin,
            "pinnedProductIds": self.pinned_product_ids,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        data = _ensure_mapping(data, "Usuário")
        pinned = data.get("pinnedProductIds")
        if pinned is not None:
            if not isinstance(pinned, list):
                raise ParseError("Usuário: 'pinnedProductIds' deve ser uma lista")
            pinned = [_as_strict_int(p, "pinnedProductIds", "Usuário") for p in pinned]
        return cls(
            id=_as_int(_require(data, "id", "Usuário"), "id", "Usuário"),
            name=str(_require(data, "name", "Usuário")),
            pin=str(_require(data, "pin", "Usuário")),
            profile_picture=data.get("profilePicture"),
            pinned_product_ids=pinned,
        )


@dataclass
class Snapshot:
    """
    Cópia completa do banco. Na importação, tables e users são opcionais
    (formatos antigos não os possuem); None significa "não importar".
    """
    products: List[Product] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    orders: List[Order] = field(default_factory=list)
    tables: Optional[List[Table]] = None
    users: Optional[List[User]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "products": [p.to_dict() for p in self.products],
            "categories": [c.to_dict() for c in self.categories],
            "orders": [o.to_dict() for o in self.orders],
            "tables": [t.to_dict() for t in self.tables or []],
            "users": [u.to_dict() for u in self.users or []],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Snapshot":
        if not isinstance(data, Mapping):
            raise ParseError("Exportação: documento deve ser um objeto JSON")

        def _collection(key: str, required: bool) -> Optional[list]:
            value = data.get(key)
            if value is None:
                if required:
                    raise ParseError(f"Exportação: coleção obrigatória ausente '{key}'")
                return None
            if not isinstance(value, list):
                raise ParseError(f"Exportação: '{key}' deve ser uma lista")
            return value

        tables = _collection("tables", False)
        users = _collection("users", False)
        return cls(
            products=[Product.from_dict(p) for p in _collection("products", True)],
            categories=[Category.from_dict(c) for c in _collection("categories", True)],
            orders=[Order.from_dict(o) for o in _collection("orders", True)],
            tables=None if tables is None else [Table.from_dict(t) for t in tables],
            users=None if users is None else [User.from_dict(u) for u in users],
        )


@dataclass
class LicenseKey:
    key_hash: str
    email: str
    machine_fingerprint: str
    activated_at: int
    expires_at: Optional[int] = None
    is_active: bool = True
    license_type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyHash": self.key_hash,
            "email": self.email,
            "machineFingerprint": self.machine_fingerprint,
            "activatedAt": self.activated_at,
            "expiresAt": self.expires_at,
            "isActive": self.is_active,
            "licenseType": self.license_type,
        }


@dataclass
class LicenseValidationResponse:
    valid: bool
    expires_at: Optional[int] = None
    user_email: str = ""
    license_type: str = ""
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "LicenseValidationResponse":
        """Aceita snake_case (formato do servidor) e camelCase."""
        if not isinstance(data, Mapping):
            raise ParseError("Parse error: resposta do servidor não é um objeto JSON")
        valid = data.get("valid")
        if not isinstance(valid, bool):
            raise ParseError("Parse error: campo 'valid' ausente ou inválido")
        expires_at = data.get("expires_at", data.get("expiresAt"))
        if expires_at is not None:
            expires_at = _as_int(expires_at, "expires_at", "Parse error")
        return cls(
            valid=valid,
            expires_at=expires_at,
            user_email=data.get("user_email", data.get("userEmail")) or "",
            license_type=data.get("license_type", data.get("licenseType")) or "",
            error=data.get("error"),
        )


@dataclass
class LicenseStatus:
    is_activated: bool
    is_valid: bool
    expires_at: Optional[int] = None
    email: Optional[str] = None
    days_remaining: Optional[int] = None
    license_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isActivated": self.is_activated,
            "isValid": self.is_valid,
            "expiresAt": self.expires_at,
            "email": self.email,
            "daysRemaining": self.days_remaining,
            "licenseType": self.license_type,
            "errorMessage": self.error_message,
        }
