# commands.py
# Comandos chamados pela interface
#
# Cada comando recebe/retorna dicionários camelCase e devolve
# (sucesso, resultado) ou (False, mensagem de erro).

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from tpv.config import get_database_path
from tpv.database import Database, open_database
from tpv.errors import NotInitializedError, TPVError
from tpv.license import LicenseManager
from tpv.logger import log_error, log_startup
from tpv.models import Category, Order, Product, Table, User
from tpv.services import CategoryService, OrderService, ProductService, TableService, UserService
from tpv.transfer import BulkTransfer

T = TypeVar("T")
Result = Tuple[bool, Any]


class AppState:
    """Estado compartilhado pelos comandos: o banco só existe após init_app."""

    def __init__(self, db: Optional[Database] = None, license_manager: Optional[LicenseManager] = None):
        self.db = db
        self._license_manager = license_manager

    def require_db(self) -> Database:
        if self.db is None:
            raise NotInitializedError("Database not initialized")
        return self.db

    def products(self) -> ProductService:
        return ProductService(self.require_db())

    def categories(self) -> CategoryService:
        return CategoryService(self.require_db())

    def orders(self) -> OrderService:
        return OrderService(self.require_db())

    def tables(self) -> TableService:
        return TableService(self.require_db())

    def users(self) -> UserService:
        return UserService(self.require_db())

    def transfer(self) -> BulkTransfer:
        return BulkTransfer(self.require_db())

    def license(self) -> LicenseManager:
        if self._license_manager is None:
            self._license_manager = LicenseManager(self.require_db())
        return self._license_manager


def init_app(db_path: Optional[str] = None) -> AppState:
    """Abre o banco no caminho informado (ou no padrão da configuração)."""
    path = db_path or get_database_path()
    log_startup(path)
    return AppState(open_database(path))


def _run(action: Callable[[], T]) -> Result:
    try:
        return True, action()
    except TPVError as e:
        log_error("Comando falhou", e)
        return False, str(e)


def _dicts(items: List[Any]) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in items]


def init_database(state: AppState) -> Result:
    if state.db is not None:
        return True, "Database already initialized"
    return True, "Database initialized"


# ==================== Products ====================

def get_products(state: AppState) -> Result:
    return _run(lambda: _dicts(state.products().list()))


def create_product(state: AppState, product: Mapping[str, Any]) -> Result:
    return _run(lambda: state.products().upsert(Product.from_dict(product)))


def update_product(state: AppState, product: Mapping[str, Any]) -> Result:
    return _run(lambda: state.products().update(Product.from_dict(product)))


def delete_product(state: AppState, id: int) -> Result:
    return _run(lambda: state.products().delete(id))


# ==================== Categories ====================

def get_categories(state: AppState) -> Result:
    return _run(lambda: _dicts(state.categories().list()))


def create_category(state: AppState, category: Mapping[str, Any]) -> Result:
    return _run(lambda: state.categories().upsert(Category.from_dict(category)))


def update_category(state: AppState, category: Mapping[str, Any]) -> Result:
    return _run(lambda: state.categories().update(Category.from_dict(category)))


def delete_category(state: AppState, id: int) -> Result:
    return _run(lambda: state.categories().delete(id))


# ==================== Orders ====================

def get_orders(state: AppState) -> Result:
    return _run(lambda: _dicts(state.orders().list()))


def create_order(state: AppState, order: Mapping[str, Any]) -> Result:
    return _run(lambda: state.orders().upsert(Order.from_dict(order)))


def update_order(state: AppState, order: Mapping[str, Any]) -> Result:
    return _run(lambda: state.orders().update(Order.from_dict(order)))


def delete_order(state: AppState, id: int) -> Result:
    return _run(lambda: state.orders().delete(id))


# ==================== Tables ====================

def get_tables(state: AppState) -> Result:
    return _run(lambda: _dicts(state.tables().list()))


def create_table(state: AppState, table: Mapping[str, Any]) -> Result:
    return _run(lambda: state.tables().upsert(Table.from_dict(table)))


def update_table(state: AppState, table: Mapping[str, Any]) -> Result:
    return _run(lambda: state.tables().update(Table.from_dict(table)))


def delete_table(state: AppState, id: int) -> Result:
    return _run(lambda: state.tables().delete(id))


# ==================== Users ====================

def get_users(state: AppState) -> Result:
    return _run(lambda: _dicts(state.users().list()))


def create_user(state: AppState, user: Mapping[str, Any]) -> Result:
    return _run(lambda: state.users().upsert(User.from_dict(user)))


def update_user(state: AppState, user: Mapping[str, Any]) -> Result:
    return _run(lambda: state.users().update(User.from_dict(user)))


def delete_user(state: AppState, id: int) -> Result:
    return _run(lambda: state.users().delete(id))


# ==================== Utility ====================

def export_data(state: AppState) -> Result:
    return _run(lambda: state.transfer().export().to_dict())


def import_data(state: AppState, data: Mapping[str, Any]) -> Result:
    return _run(lambda: state.transfer().import_data(data))


def clear_all_data(state: AppState) -> Result:
    return _run(lambda: state.transfer().clear_all())


# ==================== License ====================

def get_license_status(state: AppState) -> Result:
    return _run(lambda: state.license().status().to_dict())


def activate_license(state: AppState, key: str, email: str) -> Result:
    return _run(lambda: state.license().activate(key, email).to_dict())


def get_machine_fingerprint(state: AppState) -> Result:
    return _run(lambda: state.license().fingerprint())


def clear_license(state: AppState) -> Result:
    return _run(lambda: state.license().clear())


# ==================== Maintenance ====================

def verify_database(state: AppState) -> Result:
    try:
        return state.require_db().verify_integrity()
    except NotInitializedError as e:
        return False, str(e)


def backup_database(state: AppState, backup_dir: Optional[str] = None) -> Result:
    try:
        return state.require_db().create_backup(backup_dir)
    except NotInitializedError as e:
        return False, str(e)
