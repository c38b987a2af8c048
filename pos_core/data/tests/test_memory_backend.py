import pytest

from pos_core.data.backends.memory_backend import InMemoryStore, InMemorySyncHost
from pos_core.data.models import Member, Product, ShopSettings, Transaction
from pos_core.data.util import get_store
from pos_core.errors import SyncError, UnknownMemberError, UnknownProductError


def _tx(tx_id, total=1.0):
    return Transaction(id=tx_id, order_number=f"ORD-{tx_id}", timestamp=1, items=[], subtotal=total, total=total)


def test_reads_return_copies(store):
    product = store.get_product("5")
    product.stock = 0
    assert store.get_product("5").stock == 12

    member = store.get_member("m-1")
    member.points = 0
    assert store.get_member("m-1").points == 500


def test_set_stock_floors_at_zero(store):
    store.set_stock("5", -3)
    assert store.get_product("5").stock == 0
    with pytest.raises(UnknownProductError):
        store.set_stock("missing", 1)


def test_adjust_points(store):
    store.adjust_points("m-2", 90)
    assert store.get_member("m-2").points == 90
    with pytest.raises(UnknownMemberError):
        store.adjust_points("missing", 1)


def test_log_is_newest_first_and_discardable():
    store = InMemoryStore()
    store.append_transaction(_tx("a"))
    store.append_transaction(_tx("b"))
    assert [t.id for t in store.list_transactions()] == ["b", "a"]
    store.discard_transaction("b")
    assert [t.id for t in store.list_transactions()] == ["a"]


def test_order_counter_starts_from_config():
    store = InMemoryStore()
    assert store.next_order_number() == 1001
    assert store.increment_order_number() == 1002
    assert InMemoryStore(next_order_number=5).next_order_number() == 5


def test_snapshot_round_trip(store, settings):
    store.append_transaction(_tx("a", 4.0))
    snapshot = store.to_snapshot("POS-TEST", settings)

    other = InMemoryStore(products=[Product(id="x", name="X", price=1.0)], members=[Member(id="z")])
    other.replace_from_snapshot(snapshot)
    assert [p.id for p in other.list_products()] == [p.id for p in store.list_products()]
    assert other.get_member("z") is None
    assert other.list_transactions()[0].id == "a"
    assert other.next_order_number() == store.next_order_number()
    assert other.settings == settings


def test_sync_host_failure_switch():
    host = InMemorySyncHost()
    assert host.pull_snapshot() is None
    snapshot = InMemoryStore().to_snapshot("POS-TEST", ShopSettings())
    assert host.push_snapshot(snapshot)
    assert host.pull_snapshot().terminal_id == "POS-TEST"

    host.online = False
    with pytest.raises(SyncError):
        host.push_snapshot(snapshot)
    with pytest.raises(SyncError):
        host.pull_snapshot()


def test_get_store():
    assert get_store("memory").list_products() == []
    demo = get_store("demo")
    assert len(demo.list_products()) == 8
    assert demo.settings.find_coupon("welcome10").code == "WELCOME10"
    with pytest.raises(ValueError):
        get_store("postgres")


def test_seed_cli_writes_snapshot(tmp_path, capsys):
    from pos_core.data.models import StoreSnapshot
    from pos_core.data.seed_data import main

    out = tmp_path / "snapshot.json"
    assert main(["--output", str(out), "--terminal-id", "POS-09"]) == 0
    snapshot = StoreSnapshot.model_validate_json(out.read_text(encoding="utf-8"))
    assert snapshot.terminal_id == "POS-09"
    assert len(snapshot.products) == 8
    assert snapshot.next_order_number == 1001

    assert main(["--output", str(out), "--no-overwrite"]) == 2
    assert "Refusing" in capsys.readouterr().err


def test_upsert_product_is_seen_on_next_read(store):
    restocked = store.get_product("6").model_copy(update={"stock": 40, "price": 2.8})
    store.upsert_product(restocked)
    assert store.get_product("6").stock == 40
    assert store.get_product("6").price == pytest.approx(2.8)
