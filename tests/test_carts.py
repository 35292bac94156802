import asyncio
from decimal import Decimal

from db_case import ALICE, BOB, KEYBOARD, MOUSE, ShopTestCase
from services import carts, catalog
from services.context import ANONYMOUS, RequestContext
from services.errors import InvalidQuantityError, NotFoundError, PermissionDeniedError


class CartTestCase(ShopTestCase):
    async def test_seeded_cart(self):
        cart = await carts.get_cart(ALICE)
        self.assertEqual(cart.cust_num, ALICE)
        self.assertEqual(cart.total_quantity, 3)
        self.assertEqual(cart.total_amount, Decimal("84.98"))
        self.assertEqual(cart.items[0].product_name, "Wireless Mouse")
        self.assertEqual(cart.items[0].subtotal, Decimal("39.98"))

    async def test_customer_without_cart(self):
        self.assertIsNone(await carts.get_cart(BOB))
        cart = await carts.get_or_create_cart(BOB)
        self.assertTrue(cart.is_empty)
        # calling again returns the same cart
        again = await carts.get_or_create_cart(BOB)
        self.assertEqual(again.cart_id, cart.cart_id)

    async def test_unknown_customer(self):
        with self.assertRaises(NotFoundError):
            await carts.get_cart(424242)
        with self.assertRaises(NotFoundError):
            await carts.add_product_to_cart(424242, MOUSE, 1)
        with self.assertRaises(NotFoundError):
            await carts.clear_cart(424242)

    async def test_repeated_adds_merge_into_one_item(self):
        ctx = await self.new_customer()
        prod = await self.new_product("Sticker", "1.25")
        await carts.add_product_to_cart(ctx.customer_id, prod, 1)
        await carts.add_product_to_cart(ctx.customer_id, prod, 3)

        cart = await carts.get_cart(ctx.customer_id)
        self.assertEqual(len(cart.items), 1)
        self.assertEqual(cart.items[0].quantity, 4)
        self.assertEqual(cart.total_amount, Decimal("5.00"))

    async def test_add_creates_cart_and_captures_price(self):
        await carts.add_product_to_cart(BOB, KEYBOARD, 1)
        await catalog.update_product(KEYBOARD, price="120.00")

        cart = await carts.get_cart(BOB)
        self.assertEqual(cart.items[0].unit_price, Decimal("89.00"))
        # a later add keeps the price captured by the first one
        await carts.add_product_to_cart(BOB, KEYBOARD, 1)
        cart = await carts.get_cart(BOB)
        self.assertEqual(cart.items[0].quantity, 2)
        self.assertEqual(cart.items[0].unit_price, Decimal("89.00"))

    async def test_invalid_quantities_rejected(self):
        for qty in (0, -1, 1.5, "2", None, True):
            with self.assertRaises(InvalidQuantityError):
                await carts.add_product_to_cart(ALICE, MOUSE, qty)
        cart = await carts.get_cart(ALICE)
        self.assertEqual(cart.total_quantity, 3)

        item = cart.items[0]
        with self.assertRaises(InvalidQuantityError):
            await carts.update_cart_item_quantity(item.cart_item_id, 0)
        self.assertEqual((await carts.get_cart_item(item.cart_item_id)).quantity, 2)

    async def test_add_unknown_product(self):
        with self.assertRaises(NotFoundError):
            await carts.add_product_to_cart(ALICE, 999999, 1)

    async def test_update_and_remove_items(self):
        cart = await carts.get_cart(ALICE)
        mouse, speaker = cart.items

        await carts.update_cart_item_quantity(mouse.cart_item_id, 5)
        self.assertEqual((await carts.get_cart_item(mouse.cart_item_id)).quantity, 5)

        await carts.remove_cart_item(speaker.cart_item_id)
        cart = await carts.get_cart(ALICE)
        self.assertEqual([i.prod_num for i in cart.items], [MOUSE])
        self.assertEqual(cart.total_amount, Decimal("99.95"))

        with self.assertRaises(NotFoundError):
            await carts.remove_cart_item(speaker.cart_item_id)
        with self.assertRaises(NotFoundError):
            await carts.update_cart_item_quantity(speaker.cart_item_id, 1)
        with self.assertRaises(NotFoundError):
            await carts.get_cart_item(speaker.cart_item_id)

    async def test_clear_cart(self):
        await carts.clear_cart(ALICE)
        cart = await carts.get_cart(ALICE)
        self.assertTrue(cart.is_empty)
        self.assertEqual(cart.total_amount, Decimal("0"))

        # no cart is fine too
        await carts.clear_cart(BOB)
        self.assertIsNone(await carts.get_cart(BOB))

    async def test_items_only_editable_by_owner(self):
        item = (await carts.get_cart(ALICE)).items[0]
        bob = RequestContext.for_customer(BOB)

        with self.assertRaises(PermissionDeniedError):
            await carts.update_my_cart_item(bob, item.cart_item_id, 9)
        with self.assertRaises(PermissionDeniedError):
            await carts.remove_my_cart_item(bob, item.cart_item_id)
        with self.assertRaises(PermissionDeniedError):
            await carts.remove_my_cart_item(ANONYMOUS, item.cart_item_id)
        self.assertEqual((await carts.get_cart_item(item.cart_item_id)).quantity, 2)

        alice = RequestContext.for_customer(ALICE)
        await carts.update_my_cart_item(alice, item.cart_item_id, 7)
        self.assertEqual((await carts.get_cart_item(item.cart_item_id)).quantity, 7)
        await carts.remove_my_cart_item(alice, item.cart_item_id)
        self.assertEqual(len((await carts.get_cart(ALICE)).items), 1)

    async def test_every_mutation_bumps_updated_date(self):
        last = (await carts.get_cart(ALICE)).updated_date

        async def assert_bumped():
            nonlocal last
            await asyncio.sleep(0.001)
            current = (await carts.get_cart(ALICE)).updated_date
            self.assertGreater(current, last)
            last = current

        await carts.add_product_to_cart(ALICE, KEYBOARD, 1)
        await assert_bumped()

        item = (await carts.get_cart(ALICE)).items[0]
        await carts.update_cart_item_quantity(item.cart_item_id, 4)
        await assert_bumped()

        await carts.remove_cart_item(item.cart_item_id)
        await assert_bumped()

        await carts.clear_cart(ALICE)
        await assert_bumped()
