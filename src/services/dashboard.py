from db import crud
from db.database import connect
from db.models import DashboardSummary
from services.context import RequestContext, require_admin


async def get_dashboard_summary(recent: int = 5) -> DashboardSummary:
    """Store-wide counts plus the most recent orders."""
    async with connect() as conn:
        return DashboardSummary(
            total_orders=await crud.count_orders(conn),
            total_products=await crud.count_products(conn),
            total_customers=await crud.count_customers(conn),
            recent_orders=tuple(await crud.list_orders(conn, limit=recent)),
        )


async def get_admin_dashboard(ctx: RequestContext, recent: int = 5) -> DashboardSummary:
    require_admin(ctx)
    return await get_dashboard_summary(recent)
