# Overview: Service-layer operations for analytics; dashboard, sales, customer, and product rollups.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func

from crm.extensions import db
from crm.models import Category, Customer, Product, Sale
from crm.time_utils import parse_iso_datetime, utcnow
from crm.validation import ValidationError

REPORT_TYPES = ("dashboard", "sales", "customers", "products")
TOP_N = 10


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""
    pass


@dataclass
class ReportScope:
    """
    What slice of the store a report covers.

    floor_id pins sales and customers to one floor; user_id pins sales to
    one salesperson (and customers to those assigned to them).
    """
    store_id: int
    floor_id: int | None = None
    user_id: int | None = None
    start: datetime | None = None
    end: datetime | None = None


def parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("start/end must be ISO-8601 dates")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def _sales(scope: ReportScope, *, dated: bool = True):
    query = db.session.query(Sale).filter(Sale.store_id == scope.store_id)
    if scope.floor_id is not None:
        query = query.filter(Sale.floor_id == scope.floor_id)
    if scope.user_id is not None:
        query = query.filter(Sale.user_id == scope.user_id)
    if dated and scope.start is not None:
        query = query.filter(Sale.created_at >= scope.start)
    if dated and scope.end is not None:
        query = query.filter(Sale.created_at <= scope.end)
    return query


def _customers(scope: ReportScope):
    query = db.session.query(Customer).filter(Customer.store_id == scope.store_id)
    if scope.floor_id is not None:
        query = query.filter(Customer.floor_id == scope.floor_id)
    if scope.user_id is not None:
        query = query.filter(Customer.assigned_to_id == scope.user_id)
    return query


def dashboard_report(scope: ReportScope) -> dict:
    sales = _sales(scope)
    total_sales, sales_count = sales.with_entities(
        func.coalesce(func.sum(Sale.total_amount_cents), 0),
        func.count(Sale.id),
    ).one()

    recent = sales.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(TOP_N).all()

    six_months_ago = utcnow() - timedelta(days=183)
    month = func.strftime("%Y-%m", Sale.created_at)
    by_month = (
        _sales(scope, dated=False)
        .filter(Sale.created_at >= six_months_ago)
        .with_entities(month, func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount_cents), 0))
        .group_by(month)
        .order_by(month)
        .all()
    )

    return {
        "total_sales_cents": int(total_sales),
        "sales_count": sales_count,
        "total_customers": _customers(scope).count(),
        "total_products": db.session.query(Product)
        .filter(Product.store_id == scope.store_id, Product.is_active.is_(True))
        .count(),
        "recent_sales": [s.to_dict() for s in recent],
        "sales_by_month": [
            {"period": period, "count": count, "revenue_cents": int(revenue)}
            for period, count, revenue in by_month
        ],
    }


def sales_report(scope: ReportScope) -> dict:
    sales = _sales(scope)
    count, revenue, quantity, average = sales.with_entities(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount_cents), 0),
        func.coalesce(func.sum(Sale.quantity), 0),
        func.coalesce(func.avg(Sale.total_amount_cents), 0),
    ).one()

    by_status = sales.with_entities(Sale.status, func.count(Sale.id)).group_by(Sale.status).all()
    by_payment = (
        sales.with_entities(Sale.payment_method, func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount_cents), 0))
        .group_by(Sale.payment_method)
        .all()
    )

    qty = func.sum(Sale.quantity).label("qty")
    top_products = (
        sales.join(Product, Product.id == Sale.product_id)
        .with_entities(Sale.product_id, Product.name, qty, func.sum(Sale.total_amount_cents))
        .group_by(Sale.product_id, Product.name)
        .order_by(qty.desc(), Sale.product_id.asc())
        .limit(TOP_N)
        .all()
    )

    return {
        "sales_stats": {
            "count": count,
            "revenue_cents": int(revenue),
            "quantity": int(quantity),
            "average_sale_cents": int(round(average or 0)),
        },
        "sales_by_status": [{"status": s, "count": c} for s, c in by_status],
        "sales_by_payment_method": [
            {"payment_method": m, "count": c, "revenue_cents": int(r)} for m, c, r in by_payment
        ],
        "top_products": [
            {"product_id": pid, "name": name, "quantity": int(q), "revenue_cents": int(r)}
            for pid, name, q, r in top_products
        ],
    }


def customer_report(scope: ReportScope) -> dict:
    customers = _customers(scope)
    by_status = customers.with_entities(Customer.status, func.count(Customer.id)).group_by(Customer.status).all()

    spent = func.sum(Sale.total_amount_cents).label("spent")
    top = (
        _sales(scope)
        .join(Customer, Customer.id == Sale.customer_id)
        .with_entities(Sale.customer_id, Customer.name, spent, func.count(Sale.id))
        .group_by(Sale.customer_id, Customer.name)
        .order_by(spent.desc(), Sale.customer_id.asc())
        .limit(TOP_N)
        .all()
    )

    return {
        "customer_stats": {
            "total": customers.count(),
            "high_value": customers.filter(Customer.customer_value == "HIGH_VALUE").count(),
        },
        "customers_by_status": [{"status": s, "count": c} for s, c in by_status],
        "top_customers": [
            {"customer_id": cid, "name": name, "spent_cents": int(total), "purchases": n}
            for cid, name, total, n in top
        ],
    }


def product_report(scope: ReportScope) -> dict:
    products = db.session.query(Product).filter(Product.store_id == scope.store_id, Product.is_active.is_(True))

    by_category = (
        products.outerjoin(Category, Category.id == Product.category_id)
        .with_entities(Product.category_id, Category.name, func.count(Product.id))
        .group_by(Product.category_id, Category.name)
        .all()
    )
    low_stock = (
        products.filter(Product.stock_quantity <= Product.min_stock_level)
        .order_by(Product.stock_quantity.asc(), Product.id.asc())
        .limit(TOP_N)
        .all()
    )

    return {
        "product_stats": {"active": products.count()},
        "products_by_category": [
            {"category_id": cid, "category": name, "count": c} for cid, name, c in by_category
        ],
        "low_stock_products": [p.to_dict() for p in low_stock],
    }


REPORTS = {
    "dashboard": dashboard_report,
    "sales": sales_report,
    "customers": customer_report,
    "products": product_report,
}


def run_report(report_type: str | None, scope: ReportScope) -> dict:
    """Unknown or missing types fall back to the dashboard."""
    report = REPORTS.get((report_type or "dashboard").lower(), dashboard_report)
    return report(scope)
