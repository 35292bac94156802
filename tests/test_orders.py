import asyncio
from decimal import Decimal
from unittest.mock import patch

from db import crud
from db.models import OrderStatus
from db_case import ALICE, BOB, KEYBOARD, MOUSE, SEEDED_ORDER, ShopTestCase
from services import carts, catalog, orders
from services.context import ANONYMOUS, RequestContext
from services.errors import (
    EmptyCartError,
    IllegalTransitionError,
    InvalidStatusError,
    NotFoundError,
    PermissionDeniedError,
)


class OrderEngineTestCase(ShopTestCase):
    async def _checkout(self, customer_id: int):
        return await orders.create_order_from_cart(
            customer_id, "Recipient", "0900000000", "1 Main St", None
        )

    # ---------- checkout ----------

    async def test_checkout_two_products_totals_and_empties_cart(self):
        ctx = await self.new_customer()
        p1 = await self.new_product("Desk Lamp", "100.00")
        p2 = await self.new_product("Lamp Shade", "50.00")
        await carts.add_product_to_cart(ctx.customer_id, p1, 2)
        await carts.add_product_to_cart(ctx.customer_id, p2, 1)

        order = await orders.place_order(ctx, "Carol Xu", "0911222333", "1 Test Lane", "ring twice")

        self.assertEqual(order.status, OrderStatus.PENDING_PAYMENT)
        self.assertEqual(order.total_amount, Decimal("250.00"))
        self.assertEqual(order.item_count, 2)
        self.assertEqual(order.note, "ring twice")
        self.assertTrue(order.order_number.startswith("ORD"))
        self.assertEqual(order.cust_num, ctx.customer_id)

        by_prod = {item.prod_num: item for item in order.items}
        self.assertEqual(by_prod[p1].quantity, 2)
        self.assertEqual(by_prod[p1].unit_price, Decimal("100.00"))
        self.assertEqual(by_prod[p1].product_name, "Desk Lamp")
        self.assertEqual(by_prod[p2].subtotal, Decimal("50.00"))

        cart = await carts.get_cart(ctx.customer_id)
        self.assertIsNotNone(cart)
        self.assertTrue(cart.is_empty)

    async def test_total_equals_sum_of_item_subtotals(self):
        await carts.add_product_to_cart(ALICE, KEYBOARD, 3)
        order = await self._checkout(ALICE)
        self.assertEqual(order.total_amount, sum(i.subtotal for i in order.items))
        # seeded cart: 2 x 19.99 + 1 x 45.00, plus 3 x 89.00
        self.assertEqual(order.total_amount, Decimal("351.98"))

    async def test_checkout_uses_cart_price_not_current_price(self):
        ctx = await self.new_customer()
        prod = await self.new_product("Gadget", "10.00")
        await carts.add_product_to_cart(ctx.customer_id, prod, 1)
        await catalog.update_product(prod, price="12.00")

        order = await self._checkout(ctx.customer_id)
        self.assertEqual(order.items[0].unit_price, Decimal("10.00"))
        self.assertEqual(order.total_amount, Decimal("10.00"))

    async def test_checkout_empty_cart_fails_without_writing(self):
        ctx = await self.new_customer()
        before = await orders.count_orders()

        # no cart at all
        with self.assertRaises(EmptyCartError):
            await self._checkout(ctx.customer_id)

        # a cart that exists but was emptied
        await carts.add_product_to_cart(ctx.customer_id, MOUSE, 1)
        await carts.clear_cart(ctx.customer_id)
        with self.assertRaises(EmptyCartError):
            await orders.place_order(ctx, "Carol", "0911222333", "1 Test Lane")

        self.assertEqual(await orders.count_orders(), before)

    async def test_checkout_unknown_customer(self):
        with self.assertRaises(NotFoundError):
            await self._checkout(424242)

    async def test_checkout_is_atomic_when_clearing_cart_fails(self):
        before = await orders.count_orders()
        cart_before = await carts.get_cart(ALICE)

        with patch.object(crud, "clear_cart_items", side_effect=RuntimeError("disk full")):
            with self.assertRaises(RuntimeError):
                await self._checkout(ALICE)

        self.assertEqual(await orders.count_orders(), before)
        self.assertEqual(await orders.list_orders_for_customer(ALICE), [])
        cart_after = await carts.get_cart(ALICE)
        self.assertEqual(
            [(i.prod_num, i.quantity) for i in cart_after.items],
            [(i.prod_num, i.quantity) for i in cart_before.items],
        )

    async def test_checkout_is_atomic_when_item_insert_fails(self):
        before = await orders.count_orders()
        with patch.object(crud, "insert_order_item", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                await self._checkout(ALICE)
        self.assertEqual(await orders.count_orders(), before)
        cart = await carts.get_cart(ALICE)
        self.assertEqual(cart.total_quantity, 3)

    async def test_order_snapshot_survives_product_edit(self):
        ctx = await self.new_customer()
        prod = await self.new_product("Old Name", "20.00")
        await carts.add_product_to_cart(ctx.customer_id, prod, 2)
        order = await self._checkout(ctx.customer_id)

        await catalog.update_product(prod, name="New Name", price="99.99")

        reloaded = await orders.get_order(order.order_id)
        self.assertEqual(reloaded.items[0].product_name, "Old Name")
        self.assertEqual(reloaded.items[0].unit_price, Decimal("20.00"))
        self.assertEqual(reloaded.total_amount, Decimal("40.00"))

    async def test_order_numbers_are_unique(self):
        numbers = set()
        for _ in range(3):
            await carts.add_product_to_cart(ALICE, MOUSE, 1)
            numbers.add((await self._checkout(ALICE)).order_number)
        self.assertEqual(len(numbers), 3)

    def test_generate_order_number_format(self):
        from datetime import datetime

        number = orders.generate_order_number(datetime(2025, 11, 2, 15, 30, 45))
        self.assertTrue(number.startswith("ORD20251102153045"))
        self.assertEqual(len(number), len("ORD20251102153045") + 4)

    # ---------- status lifecycle ----------

    async def test_update_status_overwrites(self):
        await carts.add_product_to_cart(ALICE, MOUSE, 1)
        order = await self._checkout(ALICE)

        await orders.update_order_status(order.order_id, "PAID")
        self.assertEqual((await orders.get_order(order.order_id)).status, OrderStatus.PAID)

        # jumps outside the lifecycle are applied, only logged
        await orders.update_order_status(order.order_id, "DELIVERED")
        self.assertEqual(
            (await orders.get_order(order.order_id)).status, OrderStatus.DELIVERED
        )

    async def test_update_status_invalid_name_leaves_order_unchanged(self):
        await carts.add_product_to_cart(ALICE, MOUSE, 1)
        order = await self._checkout(ALICE)

        for bad in ("FOO", "paid", "", "Pending Payment"):
            with self.assertRaises(InvalidStatusError):
                await orders.update_order_status(order.order_id, bad)

        reloaded = await orders.get_order(order.order_id)
        self.assertEqual(reloaded.status, OrderStatus.PENDING_PAYMENT)
        self.assertEqual(reloaded.updated_date, order.updated_date)

    async def test_update_status_unknown_order(self):
        with self.assertRaises(NotFoundError):
            await orders.update_order_status(999, "PAID")

    async def test_cancel_allowed_before_shipping(self):
        for status in ("PENDING_PAYMENT", "PAID", "PROCESSING"):
            await carts.add_product_to_cart(ALICE, MOUSE, 1)
            order = await self._checkout(ALICE)
            if status != "PENDING_PAYMENT":
                await orders.update_order_status(order.order_id, status)

            await orders.cancel_order(order.order_id)
            self.assertEqual(
                (await orders.get_order(order.order_id)).status, OrderStatus.CANCELLED
            )

    async def test_cancel_rejected_after_shipping(self):
        await carts.add_product_to_cart(ALICE, MOUSE, 1)
        order = await self._checkout(ALICE)
        await orders.update_order_status(order.order_id, "SHIPPED")

        with self.assertRaises(IllegalTransitionError) as cm:
            await orders.cancel_order(order.order_id)
        self.assertEqual(cm.exception.current, OrderStatus.SHIPPED)
        self.assertEqual((await orders.get_order(order.order_id)).status, OrderStatus.SHIPPED)

        # the seeded order is already delivered
        with self.assertRaises(IllegalTransitionError):
            await orders.cancel_order(SEEDED_ORDER)
        self.assertEqual(
            (await orders.get_order(SEEDED_ORDER)).status, OrderStatus.DELIVERED
        )

    async def test_cancel_twice_rejected(self):
        await carts.add_product_to_cart(ALICE, MOUSE, 1)
        order = await self._checkout(ALICE)
        await orders.cancel_order(order.order_id)
        with self.assertRaises(IllegalTransitionError):
            await orders.cancel_order(order.order_id)

    # ---------- queries ----------

    async def test_seeded_order_lookup(self):
        order = await orders.get_order_by_number("ORD202510280930151234")
        self.assertEqual(order.order_id, SEEDED_ORDER)
        self.assertEqual(order.cust_num, BOB)
        self.assertEqual(order.total_amount, Decimal("98.50"))
        self.assertEqual(
            sorted(i.product_name for i in order.items),
            ["Mechanical Keyboard", "USB-C Cable"],
        )
        with self.assertRaises(NotFoundError):
            await orders.get_order_by_number("ORD0")
        with self.assertRaises(NotFoundError):
            await orders.get_order(424242)

    async def test_orders_are_listed_newest_first(self):
        await carts.add_product_to_cart(BOB, MOUSE, 1)
        newest = await self._checkout(BOB)

        mine = await orders.list_orders_for_customer(BOB)
        self.assertEqual([o.order_id for o in mine], [newest.order_id, SEEDED_ORDER])

        everything = await orders.list_orders()
        self.assertEqual(everything[0].order_id, newest.order_id)
        self.assertEqual(len(await orders.list_recent_orders(limit=1)), 1)

        with self.assertRaises(NotFoundError):
            await orders.list_orders_for_customer(424242)

    async def test_list_orders_by_status(self):
        delivered = await orders.list_orders_by_status("DELIVERED")
        self.assertEqual([o.order_id for o in delivered], [SEEDED_ORDER])
        self.assertEqual(await orders.list_orders_by_status(OrderStatus.PAID), [])
        with self.assertRaises(InvalidStatusError):
            await orders.list_orders_by_status("LOST")

    # ---------- context checks ----------

    async def test_customer_cannot_touch_other_orders(self):
        alice = RequestContext.for_customer(ALICE)
        with self.assertRaises(PermissionDeniedError):
            await orders.get_my_order(alice, SEEDED_ORDER)

        await carts.add_product_to_cart(BOB, MOUSE, 1)
        bobs = await self._checkout(BOB)
        with self.assertRaises(PermissionDeniedError):
            await orders.cancel_my_order(alice, bobs.order_id)
        self.assertEqual(
            (await orders.get_order(bobs.order_id)).status, OrderStatus.PENDING_PAYMENT
        )

        bob = RequestContext.for_customer(BOB)
        await orders.cancel_my_order(bob, bobs.order_id)
        self.assertEqual(
            (await orders.get_my_order(bob, bobs.order_id)).status, OrderStatus.CANCELLED
        )

    async def test_status_changes_require_admin(self):
        await carts.add_product_to_cart(ALICE, MOUSE, 1)
        order = await self._checkout(ALICE)
        alice = RequestContext.for_customer(ALICE)

        with self.assertRaises(PermissionDeniedError):
            await orders.change_order_status(alice, order.order_id, "PAID")
        with self.assertRaises(PermissionDeniedError):
            await orders.cancel_order_as_admin(ANONYMOUS, order.order_id)

        await orders.change_order_status(self.admin(), order.order_id, "PROCESSING")
        self.assertEqual(
            (await orders.get_order(order.order_id)).status, OrderStatus.PROCESSING
        )
        await orders.cancel_order_as_admin(self.admin(), order.order_id)
        self.assertEqual(
            (await orders.get_order(order.order_id)).status, OrderStatus.CANCELLED
        )

    async def test_anonymous_cannot_place_or_list(self):
        with self.assertRaises(PermissionDeniedError):
            await orders.place_order(ANONYMOUS, "A", "0900000000", "Somewhere")
        with self.assertRaises(PermissionDeniedError):
            await orders.list_my_orders(self.admin())
        self.assertEqual(await orders.list_my_orders(RequestContext.for_customer(ALICE)), [])

    async def test_status_changes_bump_updated_date(self):
        await carts.add_product_to_cart(ALICE, MOUSE, 1)
        order = await self._checkout(ALICE)
        self.assertEqual(order.updated_date, order.created_date)

        await asyncio.sleep(0.001)
        await orders.update_order_status(order.order_id, "PAID")
        paid = await orders.get_order(order.order_id)
        self.assertGreater(paid.updated_date, order.updated_date)
        self.assertEqual(paid.created_date, order.created_date)

        await asyncio.sleep(0.001)
        await orders.cancel_order(order.order_id)
        cancelled = await orders.get_order(order.order_id)
        self.assertGreater(cancelled.updated_date, paid.updated_date)
        self.assertEqual(cancelled.created_date, order.created_date)
