import unittest
from datetime import datetime
from decimal import Decimal

from db.models import (
    FORWARD_TRANSITIONS,
    Order,
    OrderItem,
    OrderStatus,
    compute_total,
    to_money,
)
from utils.pure import (
    format_money,
    generate_markdown_table,
    order_detail_markdown,
    parse_positive_int,
)


class ModelsTestCase(unittest.TestCase):
    def test_to_money(self):
        self.assertEqual(to_money("10"), Decimal("10.00"))
        self.assertEqual(to_money(2.675), Decimal("2.68"))
        self.assertEqual(to_money(Decimal("0.005")), Decimal("0.01"))

    def test_status_parse(self):
        self.assertIs(OrderStatus.parse("SHIPPED"), OrderStatus.SHIPPED)
        self.assertIsNone(OrderStatus.parse("shipped"))
        self.assertIsNone(OrderStatus.parse(None))
        self.assertEqual(OrderStatus.PENDING_PAYMENT.display_name, "Pending Payment")

    def test_lifecycle_table(self):
        self.assertEqual(set(FORWARD_TRANSITIONS), set(OrderStatus))
        self.assertTrue(OrderStatus.PAID.can_advance_to(OrderStatus.PROCESSING))
        self.assertFalse(OrderStatus.PAID.can_advance_to(OrderStatus.DELIVERED))
        self.assertTrue(OrderStatus.DELIVERED.is_terminal)
        self.assertTrue(OrderStatus.CANCELLED.is_terminal)
        cancellable = {s for s in OrderStatus if s.is_cancellable}
        self.assertEqual(
            cancellable,
            {OrderStatus.PENDING_PAYMENT, OrderStatus.PAID, OrderStatus.PROCESSING},
        )

    def test_compute_total(self):
        items = [
            OrderItem(None, None, 1, "A", 2, Decimal("100.00")),
            OrderItem(None, None, 2, "B", 1, Decimal("50.00")),
        ]
        self.assertEqual(compute_total(items), Decimal("250.00"))
        self.assertEqual(compute_total([]), Decimal("0.00"))


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = generate_markdown_table(["a", "b"], [[1, 2]], ["l", "r"])
        self.assertEqual(md, "| a | b |\n| :--- | ---: |\n| 1 | 2 |")
        self.assertEqual(generate_markdown_table(["a"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["a", "b"], [[1, 2]], ["l"])

    def test_format_money(self):
        self.assertEqual(format_money(Decimal("1234.5")), "$1,234.50")
        self.assertEqual(format_money(0), "$0.00")

    def test_parse_positive_int(self):
        self.assertEqual(parse_positive_int(" 3 "), 3)
        for bad in ("0", "-2", "1.5", "", None, "abc"):
            self.assertIsNone(parse_positive_int(bad))

    def test_order_detail_markdown(self):
        when = datetime(2025, 10, 28, 9, 30, 15)
        order = Order(
            order_id=1,
            order_number="ORD1",
            cust_num=1002,
            total_amount=Decimal("98.50"),
            status=OrderStatus.DELIVERED,
            recipient_name="Bob Wang",
            recipient_phone="0987654321",
            shipping_address="88 Mountain Ave",
            note=None,
            created_date=when,
            updated_date=when,
            items=(OrderItem(1, 1, 2002, "Mechanical Keyboard", 1, Decimal("89.00")),),
        )
        md = order_detail_markdown(order)
        self.assertIn("### Order ORD1", md)
        self.assertIn("**Delivered**", md)
        self.assertIn("| Mechanical Keyboard | 1 | $89.00 | $89.00 |", md)
        self.assertTrue(md.endswith("**Grand Total:** $98.50"))
        self.assertNotIn("Note:", md)
