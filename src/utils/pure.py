from decimal import Decimal
from typing import List, Literal, Optional


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def parse_positive_int(val) -> Optional[int]:
    """int(val) if it is a positive integer, otherwise None."""
    try:
        number = int(str(val).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def order_detail_markdown(order) -> str:
    """Render an order with its item snapshots as Markdown."""
    header = (
        f"### Order {order.order_number}\n\n"
        f"Status: **{order.status.display_name}**  \n"
        f"Placed: {order.created_date:%Y-%m-%d %H:%M}  \n"
        f"Ship To: {order.recipient_name}, {order.recipient_phone}  \n"
        f"Address: {order.shipping_address}\n\n"
    )
    if order.note:
        header += f"Note: {order.note}\n\n"
    rows = [
        [
            item.product_name,
            item.quantity,
            format_money(item.unit_price),
            format_money(item.subtotal),
        ]
        for item in order.items
    ]
    table = generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
    )
    return header + table + f"\n\n**Grand Total:** {format_money(order.total_amount)}"
