"""
Shared pytest fixtures for the order engine tests.
"""
import pytest

from pos_core.config import set_config_for_test
from pos_core.data.backends.memory_backend import InMemoryStore
from pos_core.data.models import Member, Product
from pos_core.data.seed_data import default_shop_settings, demo_members, demo_products
from pos_core.engine.kitchen import KitchenEngine
from pos_core.engine.sessions import SessionManager
from pos_core.engine.terminal import Terminal


@pytest.fixture(autouse=True)
def test_config(monkeypatch):
    """Fresh config per test, independent of the developer's environment."""
    for var in ["POS_SYNC_ENABLED", "POS_STARTING_ORDER_NUMBER", "POS_PAYMENT_EPSILON", "POS_HIDE_OUT_OF_STOCK"]:
        monkeypatch.delenv(var, raising=False)
    set_config_for_test(terminal_id="POS-TEST", cashier_id="c-1", cashier_name="Casey")
    yield


@pytest.fixture
def settings():
    """Demo shop settings: no tax, cash/card/e-wallet, WELCOME10 and FIVEOFF coupons."""
    return default_shop_settings()


@pytest.fixture
def store(settings):
    """Demo catalog and members in memory."""
    return InMemoryStore(products=demo_products(), members=demo_members(), settings=settings)


@pytest.fixture
def sessions(store, settings):
    return SessionManager(store, store, settings)


@pytest.fixture
def kitchen():
    numbers = iter(str(n) for n in range(4001, 4100))
    return KitchenEngine(ticket_number_factory=lambda: next(numbers))


@pytest.fixture
def terminal(store, settings, kitchen):
    return Terminal.from_store(store, settings=settings, kitchen=kitchen)


@pytest.fixture
def tracked_product():
    return Product(id="p-stock", name="Bagel", price=2.0, category="Bakery", track_inventory=True, stock=3)


@pytest.fixture
def member():
    return Member(id="m-test", name="Jamie", points=1000)
