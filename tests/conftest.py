import io
import json
import os
import tempfile
import urllib.error
import urllib.request

# Diretórios de dados/logs isolados antes de importar tpv (o logger configura na importação)
_TMP = tempfile.mkdtemp(prefix="tpv-tests-")
os.environ["TPV_DATA_DIR"] = _TMP
os.environ["TPV_LOG_DIR"] = os.path.join(_TMP, "logs")

import pytest

from tpv.database import open_database
from tpv.models import Order, OrderItem, Product


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TPV_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("LICENSE_SERVER_URL", raising=False)
    monkeypatch.delenv("LICENSE_API_KEY", raising=False)


@pytest.fixture
def db(tmp_path):
    database = open_database(str(tmp_path / "tpv.db"))
    yield database
    database.close()


@pytest.fixture
def coffee():
    return Product(id=1, name="Coffee", price=2.5, category="Drinks")


@pytest.fixture
def coffee_order():
    return Order(
        id=10,
        date="2026-01-05T09:30:00",
        total=5.0,
        item_count=2,
        items=[OrderItem(product_id=1, name="Coffee", price=2.5, quantity=2, category="Drinks")],
    )


class FakeResponse:
    def __init__(self, payload, status=200):
        self.status = status
        self._body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeServer:
    """Substitui urllib.request.urlopen e registra as requisições."""

    def __init__(self):
        self.requests = []
        self.response = None
        self.error = None

    def __call__(self, req, timeout=None):
        self.requests.append((req, timeout))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.response)

    @property
    def last_body(self):
        req, _ = self.requests[-1]
        return json.loads(req.data.decode("utf-8"))


@pytest.fixture
def license_server(monkeypatch):
    server = FakeServer()
    monkeypatch.setattr(urllib.request, "urlopen", server)
    return server


@pytest.fixture
def http_error():
    def _make(code, msg="error"):
        return urllib.error.HTTPError("http://localhost:3002/api/license/validate", code, msg, {}, io.BytesIO(b""))
    return _make
