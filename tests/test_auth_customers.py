from db.models import Role
from db_case import ALICE, BOB, ShopTestCase
from services import auth, carts, customers
from services.context import ANONYMOUS, RequestContext
from services.errors import (
    DuplicateIdentityError,
    InUseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailure,
)
from utils.state import GlobalState


class AuthTestCase(ShopTestCase):
    async def test_register_and_login(self):
        customer = await auth.register_customer(
            " dave_99 ", "hunter22", "Dave", "dave@example.com", "0900111222"
        )
        self.assertEqual(customer.username, "dave_99")
        self.assertIsNone(customer.address)
        self.assertEqual(await customers.count_customers(), 3)

        ctx = await auth.customer_login("dave_99", "hunter22")
        self.assertIsNotNone(ctx)
        self.assertEqual(ctx.customer_id, customer.cust_num)
        self.assertEqual(ctx.role, Role.CUSTOMER)
        self.assertIsNone(await auth.customer_login("dave_99", "wrong"))
        self.assertIsNone(await auth.customer_login("nobody", "hunter22"))

    async def test_registration_validation(self):
        with self.assertRaises(ValidationFailure) as cm:
            await auth.register_customer("ab", "123", "", "not-an-email", "12345")
        self.assertEqual(
            set(cm.exception.errors), {"username", "password", "name", "email", "phone"}
        )

        with self.assertRaises(ValidationFailure) as cm:
            await auth.register_customer("bad name", "secret123", "Eve", "eve@example.com", "0900111222")
        self.assertEqual(list(cm.exception.errors), ["username"])
        self.assertEqual(await customers.count_customers(), 2)

    async def test_registration_duplicates(self):
        with self.assertRaises(DuplicateIdentityError) as cm:
            await auth.register_customer("alice", "secret123", "A", "new@example.com", "0900111222")
        self.assertEqual(cm.exception.field, "username")

        # admin names are taken too
        with self.assertRaises(DuplicateIdentityError) as cm:
            await auth.register_customer("admin", "secret123", "A", "new@example.com", "0900111222")
        self.assertEqual(cm.exception.field, "username")

        with self.assertRaises(DuplicateIdentityError) as cm:
            await auth.register_customer("alice2", "secret123", "A", "alice@example.com", "0900111222")
        self.assertEqual(cm.exception.field, "email")

        self.assertTrue(await auth.is_username_taken("bob_w"))
        self.assertFalse(await auth.is_username_taken("zed_zed"))

    async def test_admin_login(self):
        ctx = await auth.admin_login("admin", "admin123")
        self.assertTrue(ctx.is_admin)
        self.assertIsNone(ctx.customer_id)
        self.assertIsNone(await auth.admin_login("admin", "nope"))
        # customers cannot use the admin entrance
        self.assertIsNone(await auth.admin_login("alice", "alice123"))

    async def test_custom_verifier(self):
        def reversed_verifier(raw, stored):
            return raw[::-1] == stored

        self.assertIsNotNone(await auth.customer_login("alice", "321ecila", reversed_verifier))
        self.assertIsNone(await auth.customer_login("alice", "alice123", reversed_verifier))

    def test_verify_credential(self):
        self.assertTrue(auth.verify_credential("abc", "abc"))
        self.assertFalse(auth.verify_credential("abc", "abd"))
        self.assertFalse(auth.verify_credential(None, "abc"))

    async def test_global_state_login_logout(self):
        state = GlobalState()
        self.assertEqual(state.role, Role.NONE)
        self.assertFalse(await state.login("alice", "bad"))
        self.assertEqual(state.role, Role.NONE)

        self.assertTrue(await state.login("alice", "alice123"))
        self.assertEqual(state.customer_id, ALICE)
        self.assertEqual(state.username, "alice")

        state.logout()
        self.assertIsNone(state.customer_id)
        self.assertTrue(await state.login("admin", "admin123", as_admin=True))
        self.assertEqual(state.role, Role.ADMIN)


class CustomerTestCase(ShopTestCase):
    async def test_get_and_find(self):
        alice = await customers.get_customer(ALICE)
        self.assertEqual(alice.email, "alice@example.com")
        with self.assertRaises(NotFoundError):
            await customers.get_customer(424242)

        self.assertEqual([c.cust_num for c in await customers.find_customers_by_name("Bob Wang")], [BOB])
        self.assertEqual(await customers.find_customers_by_name("Bob"), [])
        self.assertEqual((await customers.find_customer_by_email("bob@example.com")).cust_num, BOB)
        self.assertIsNone(await customers.find_customer_by_email("nobody@example.com"))
        self.assertEqual([c.cust_num for c in await customers.list_customers()], [ALICE, BOB])

    async def test_update_profile(self):
        updated = await customers.update_customer(
            ALICE, "Alice Lin", "alice.lin@example.com", "0922333444", "5 New St"
        )
        self.assertEqual(updated.name, "Alice Lin")
        self.assertEqual(updated.username, "alice")
        # keeping one's own email is fine
        await customers.update_customer(
            ALICE, "Alice Lin", "alice.lin@example.com", "0922333444", None
        )

        with self.assertRaises(DuplicateIdentityError):
            await customers.update_customer(ALICE, "A", "bob@example.com", "0922333444", None)
        with self.assertRaises(ValidationFailure):
            await customers.update_customer(ALICE, "A", "broken", "0922333444", None)
        with self.assertRaises(NotFoundError):
            await customers.update_customer(424242, "A", "x@example.com", "0922333444", None)

    async def test_delete_customer(self):
        ctx = await self.new_customer()
        await carts.add_product_to_cart(ctx.customer_id, 2001, 1)
        await customers.delete_customer(ctx.customer_id)
        with self.assertRaises(NotFoundError):
            await customers.get_customer(ctx.customer_id)

        # bob has a placed order
        with self.assertRaises(InUseError):
            await customers.delete_customer(BOB)
        with self.assertRaises(NotFoundError):
            await customers.delete_customer(424242)

    async def test_update_profile_strips_email_and_phone(self):
        updated = await customers.update_customer(
            ALICE, "Alice Chen", " alice.new@example.com ", " 0922333444 ", None
        )
        self.assertEqual(updated.email, "alice.new@example.com")
        self.assertEqual(updated.phone, "0922333444")
        self.assertEqual(
            (await customers.find_customer_by_email("alice.new@example.com")).cust_num, ALICE
        )

    async def test_admin_entry_points(self):
        alice = RequestContext.for_customer(ALICE)
        with self.assertRaises(PermissionDeniedError):
            await customers.list_customers_as_admin(alice)
        with self.assertRaises(PermissionDeniedError):
            await customers.update_customer_as_admin(
                ANONYMOUS, BOB, "Bob", "bob@example.com", "0987654321", None
            )
        with self.assertRaises(PermissionDeniedError):
            await customers.delete_customer_as_admin(alice, BOB)

        admin = self.admin()
        everyone = await customers.list_customers_as_admin(admin)
        self.assertEqual([c.cust_num for c in everyone], [ALICE, BOB])
        self.assertEqual(
            [c.cust_num for c in await customers.list_customers_as_admin(admin, " Bob Wang ")],
            [BOB],
        )
        self.assertEqual(len(await customers.list_customers_as_admin(admin, "  ")), 2)

        updated = await customers.update_customer_as_admin(
            admin, BOB, "Robert Wang", "bob@example.com", "0987654321", "New Addr"
        )
        self.assertEqual(updated.name, "Robert Wang")

        # bob has a placed order, alice does not
        with self.assertRaises(InUseError):
            await customers.delete_customer_as_admin(admin, BOB)
        await customers.delete_customer_as_admin(admin, ALICE)
        self.assertEqual(await customers.count_customers(), 1)
