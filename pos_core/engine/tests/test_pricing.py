from datetime import date

import pytest

from pos_core.data.models import (
    AddonOption,
    CartItem,
    Coupon,
    HeldCart,
    Member,
    MembershipConfig,
    PaymentDetail,
    Product,
    ShopSettings,
    TaxRateConfig,
)
from pos_core.engine.pricing import (
    cart_subtotal,
    check_coupon,
    check_points_redemption,
    item_line_total,
    points_earned,
    price,
    reconcile,
    reward_points_cost,
)


def _item(price, quantity=1, addons=(), **kwargs):
    return CartItem(
        product_id=kwargs.pop("product_id", "p1"),
        name="Item",
        price=price,
        quantity=quantity,
        selected_addons=list(addons),
        **kwargs,
    )


def _cart(*items, **kwargs):
    return HeldCart(id="s1", name="Order 1", items=list(items), **kwargs)


def _pay(amount, method="cash"):
    return PaymentDetail(method_id=method, method_name=method.title(), amount=amount)


def test_line_total_includes_addons():
    item = _item(3.0, quantity=2, addons=[AddonOption(id="a", name="Large", price=0.5)])
    assert item_line_total(item) == pytest.approx(7.0)
    assert cart_subtotal([item, _item(1.25)]) == pytest.approx(8.25)


def test_price_without_discounts_or_tax():
    cart = _cart(_item(2.5, quantity=2))
    breakdown = price(cart, None, None, ShopSettings())
    assert breakdown.subtotal == pytest.approx(5.0)
    assert breakdown.discount == 0
    assert breakdown.tax == 0
    assert breakdown.total == pytest.approx(5.0)


def test_percent_and_fixed_coupons():
    cart = _cart(_item(10.0, quantity=2))
    percent = price(cart, None, Coupon(code="P", type="percent", value=10), ShopSettings())
    fixed = price(cart, None, Coupon(code="F", type="fixed", value=5), ShopSettings())
    assert percent.coupon_discount == pytest.approx(2.0)
    assert percent.total == pytest.approx(18.0)
    assert fixed.coupon_discount == pytest.approx(5.0)
    assert fixed.total == pytest.approx(15.0)


def test_tax_rates_are_summed_on_discounted_subtotal():
    settings = ShopSettings(
        tax_rates=[
            TaxRateConfig(id="a", name="A", rate=6),
            TaxRateConfig(id="b", name="B", rate=4),
            TaxRateConfig(id="c", name="C", rate=10, enabled=False),
        ]
    )
    cart = _cart(_item(50.0, quantity=2))
    breakdown = price(cart, None, Coupon(code="F", type="fixed", value=20), settings)
    assert breakdown.tax_rate_percent == pytest.approx(10)
    assert breakdown.subtotal_after_discount == pytest.approx(80.0)
    assert breakdown.tax == pytest.approx(8.0)
    assert breakdown.total == pytest.approx(88.0)


def test_points_discount_uses_redeem_rate():
    member = Member(id="m", points=1000)
    cart = _cart(_item(10.0), member_id="m", points_to_redeem=250)
    breakdown = price(cart, member, None, ShopSettings(membership=MembershipConfig(redeem_rate=100)))
    assert breakdown.points_discount_value == pytest.approx(2.5)
    assert breakdown.total_points_redeemed == 250
    assert breakdown.total == pytest.approx(7.5)


def test_points_ignored_without_member_or_when_disabled():
    cart = _cart(_item(10.0), points_to_redeem=250)
    member = Member(id="m", points=1000)
    assert price(cart, None, None, ShopSettings()).points_discount_value == 0
    disabled = ShopSettings(membership=MembershipConfig(enabled=False))
    assert price(cart, member, None, disabled).points_discount_value == 0


def test_total_never_negative_when_discounts_exceed_subtotal():
    member = Member(id="m", points=10000)
    settings = ShopSettings(tax_rates=[TaxRateConfig(id="t", name="T", rate=6)])
    cart = _cart(_item(4.0), member_id="m", points_to_redeem=500)
    breakdown = price(cart, member, Coupon(code="F", type="fixed", value=5), settings)
    assert breakdown.subtotal_after_discount == 0
    assert breakdown.tax == 0
    assert breakdown.total == 0


def test_reward_lines_cost_points_not_money():
    reward = _item(0.0, quantity=2, is_reward=True, points_cost=300, product_id="latte")
    cart = _cart(_item(3.0), reward, member_id="m", points_to_redeem=100)
    breakdown = price(cart, Member(id="m", points=1000), None, ShopSettings())
    assert breakdown.subtotal == pytest.approx(3.0)
    assert breakdown.items_points_cost == 600
    assert breakdown.total_points_redeemed == 700


def test_reconcile_split_payment_within_epsilon():
    summary = reconcile(10.0, [_pay(4.0), _pay(5.995, "card")])
    assert summary.paid == pytest.approx(9.995)
    assert summary.can_settle is True
    assert summary.change == 0


def test_reconcile_underpaid_and_overpaid():
    short = reconcile(10.0, [_pay(9.98)])
    assert short.can_settle is False
    assert short.due == pytest.approx(0.02)

    over = reconcile(12.5, [_pay(20.0)])
    assert over.can_settle is True
    assert over.due == 0
    assert over.change == pytest.approx(7.5)


def test_reconcile_zero_total_needs_no_payment():
    assert reconcile(0.0, []).can_settle is True


def test_reward_points_cost_prefers_points_price():
    assert reward_points_cost(Product(id="1", name="Latte", price=3.5, points_price=300), 100) == 300
    assert reward_points_cost(Product(id="2", name="Cappuccino", price=3.5), 100) == 350
    assert reward_points_cost(Product(id="3", name="Tea", price=2.25), 10) == 23


def test_points_earned_floors_and_respects_frozen():
    membership = MembershipConfig(earn_rate=1.0)
    assert points_earned(12.99, membership, Member(id="m")) == 12
    assert points_earned(12.99, membership, Member(id="m", is_frozen=True)) == 0
    assert points_earned(12.99, membership, None) == 0
    assert points_earned(12.99, MembershipConfig(enabled=False), Member(id="m")) == 0


def test_check_coupon_rules():
    today = date(2026, 3, 1)
    assert check_coupon(Coupon(code="OK", type="percent", value=10), 5.0, today)
    disabled = check_coupon(Coupon(code="OFF", type="percent", value=10, enabled=False), 5.0, today)
    assert not disabled
    assert "disabled" in disabled.reason
    expired = Coupon(code="OLD", type="fixed", value=1, expiry_date=date(2026, 2, 28))
    assert not check_coupon(expired, 5.0, today)
    last_day = Coupon(code="LAST", type="fixed", value=1, expiry_date=today)
    assert check_coupon(last_day, 5.0, today)
    minimum = Coupon(code="MIN", type="fixed", value=5, min_order=20)
    assert not check_coupon(minimum, 19.99, today)
    assert check_coupon(minimum, 20.0, today)


def test_points_redemption_checks_balance_including_rewards():
    settings = ShopSettings()
    member = Member(id="m", points=500)
    reward = _item(0.0, is_reward=True, points_cost=300, product_id="latte")
    cart = _cart(_item(10.0), reward, member_id="m")
    assert check_points_redemption(200, cart, member, settings)
    denied = check_points_redemption(201, cart, member, settings)
    assert not denied
    assert denied.reason == "Insufficient points balance"


def test_points_redemption_limits():
    member = Member(id="m", points=5000)
    cart = _cart(_item(10.0), member_id="m")
    settings = ShopSettings(
        membership=MembershipConfig(
            min_redeem_points=100, max_redeem_points_per_tx=800, max_discount_percentage_by_points=50
        )
    )
    assert not check_points_redemption(50, cart, member, settings)
    assert not check_points_redemption(900, cart, member, settings)
    # 50% of a 10.00 subtotal is 5.00, i.e. 500 points
    assert check_points_redemption(500, cart, member, settings)
    assert not check_points_redemption(600, cart, member, settings)


def test_points_redemption_requires_active_member():
    cart = _cart(_item(10.0))
    settings = ShopSettings()
    assert not check_points_redemption(100, cart, None, settings)
    assert not check_points_redemption(100, cart, Member(id="m", points=500, is_frozen=True), settings)
    assert check_points_redemption(0, cart, None, settings)
