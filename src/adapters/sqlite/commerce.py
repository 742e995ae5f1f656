"""
SQLite repositories for the catalog, customers, orders, coupons and refunds.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import (
    SQLiteRepoBase,
    dt_str,
    from_json,
    parse_dt,
    parse_uuid,
    to_json,
    uuid_str,
)
from src.components.catalog.models import DiscountType, Product, ProductStatus
from src.components.coupons.models import Coupon, CouponRedemption, CouponType
from src.components.orders.models import Customer, Order, OrderItem, OrderStatus
from src.components.refunds.models import Refund, RefundStatus


class SQLiteProductRepo(SQLiteRepoBase):
    _COLUMNS = (
        "id, name, slug, sku, price, description, sale_price, discount_type, discount_value, "
        "sale_starts_at, sale_ends_at, status, active, tags_json, primary_image, seo_title, "
        "seo_description, affiliate_enabled, affiliate_use_global_settings, "
        "affiliate_commission_type, affiliate_commission_value, affiliate_discount_type, "
        "affiliate_discount_value, created_at, updated_at"
    )

    def get_by_id(self, product_id: UUID) -> Product | None:
        row = self._fetch_one("SELECT * FROM products WHERE id = ?", (str(product_id),))
        return self._map_row(row) if row else None

    def get_by_slug(self, slug: str) -> Product | None:
        row = self._fetch_one("SELECT * FROM products WHERE slug = ?", (slug,))
        return self._map_row(row) if row else None

    def get_by_sku(self, sku: str) -> Product | None:
        row = self._fetch_one("SELECT * FROM products WHERE sku = ?", (sku,))
        return self._map_row(row) if row else None

    def get_many(self, product_ids: list[UUID]) -> list[Product]:
        if not product_ids:
            return []
        marks = ", ".join("?" for _ in product_ids)
        rows = self._fetch_all(
            f"SELECT * FROM products WHERE id IN ({marks})", tuple(str(p) for p in product_ids)
        )
        return [self._map_row(r) for r in rows]

    def list_all(self) -> list[Product]:
        rows = self._fetch_all("SELECT * FROM products ORDER BY created_at DESC")
        return [self._map_row(r) for r in rows]

    def save(self, product: Product) -> Product:
        values = (
            str(product.id),
            product.name,
            product.slug,
            product.sku,
            product.price,
            product.description,
            product.sale_price,
            product.discount_type.value,
            product.discount_value,
            dt_str(product.sale_starts_at),
            dt_str(product.sale_ends_at),
            product.status.value,
            int(product.active),
            to_json(product.tags),
            product.primary_image,
            product.seo_title,
            product.seo_description,
            int(product.affiliate_enabled),
            int(product.affiliate_use_global_settings),
            product.affiliate_commission_type,
            product.affiliate_commission_value,
            product.affiliate_discount_type,
            product.affiliate_discount_value,
            product.created_at.isoformat(),
            product.updated_at.isoformat(),
        )
        updates = ", ".join(
            f"{c}=excluded.{c}" for c in self._COLUMNS.split(", ") if c not in ("id", "created_at")
        )
        self._execute(
            f"INSERT INTO products ({self._COLUMNS}) VALUES ({', '.join('?' * len(values))}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            values,
        )
        return product

    def _map_row(self, row: dict[str, Any]) -> Product:
        return Product(
            id=UUID(row["id"]),
            name=row["name"],
            slug=row["slug"],
            sku=row["sku"],
            price=row["price"],
            description=row["description"],
            sale_price=row["sale_price"],
            discount_type=DiscountType(row["discount_type"]),
            discount_value=row["discount_value"],
            sale_starts_at=parse_dt(row["sale_starts_at"]),
            sale_ends_at=parse_dt(row["sale_ends_at"]),
            status=ProductStatus(row["status"]),
            active=bool(row["active"]),
            tags=from_json(row["tags_json"], []),
            primary_image=row["primary_image"],
            seo_title=row["seo_title"],
            seo_description=row["seo_description"],
            affiliate_enabled=bool(row["affiliate_enabled"]),
            affiliate_use_global_settings=bool(row["affiliate_use_global_settings"]),
            affiliate_commission_type=row["affiliate_commission_type"],
            affiliate_commission_value=row["affiliate_commission_value"],
            affiliate_discount_type=row["affiliate_discount_type"],
            affiliate_discount_value=row["affiliate_discount_value"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
        )


class SQLiteCustomerRepo(SQLiteRepoBase):
    def get_by_id(self, customer_id: UUID) -> Customer | None:
        row = self._fetch_one("SELECT * FROM customers WHERE id = ?", (str(customer_id),))
        return self._map_row(row) if row else None

    def get_by_email(self, email: str) -> Customer | None:
        row = self._fetch_one("SELECT * FROM customers WHERE email = ?", (email.strip().lower(),))
        return self._map_row(row) if row else None

    def save(self, customer: Customer) -> Customer:
        self._execute(
            """
            INSERT INTO customers (
                id, email, name, phone, address_line1, address_line2, city, state,
                postal_code, country, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email=excluded.email,
                name=excluded.name,
                phone=excluded.phone,
                address_line1=excluded.address_line1,
                address_line2=excluded.address_line2,
                city=excluded.city,
                state=excluded.state,
                postal_code=excluded.postal_code,
                country=excluded.country,
                updated_at=excluded.updated_at
            """,
            (
                str(customer.id),
                customer.email.lower(),
                customer.name,
                customer.phone,
                customer.address_line1,
                customer.address_line2,
                customer.city,
                customer.state,
                customer.postal_code,
                customer.country,
                customer.created_at.isoformat(),
                customer.updated_at.isoformat(),
            ),
        )
        return customer

    def _map_row(self, row: dict[str, Any]) -> Customer:
        return Customer(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            phone=row["phone"],
            address_line1=row["address_line1"],
            address_line2=row["address_line2"],
            city=row["city"],
            state=row["state"],
            postal_code=row["postal_code"],
            country=row["country"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
        )


class SQLiteOrderRepo(SQLiteRepoBase):
    _COLUMNS = (
        "id, customer_id, status, subtotal, affiliate_discount, coupon_discount, tax_amount, "
        "shipping_amount, total, currency, affiliate_id, affiliate_code, affiliate_session_id, "
        "coupon_code, payment_intent_id, marketing_consent_granted, client_ip, "
        "client_user_agent, fbp, fbc, tracking_number, carrier, created_at, updated_at, "
        "paid_at, shipped_at, delivered_at, cancelled_at"
    )

    def get_by_id(self, order_id: UUID) -> Order | None:
        row = self._fetch_one("SELECT * FROM orders WHERE id = ?", (str(order_id),))
        return self._map_row(row) if row else None

    def get_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        row = self._fetch_one(
            "SELECT * FROM orders WHERE payment_intent_id = ?", (payment_intent_id,)
        )
        return self._map_row(row) if row else None

    def list_orders(
        self, status: OrderStatus | None = None, limit: int = 50, offset: int = 0
    ) -> list[Order]:
        if status is None:
            rows = self._fetch_all(
                "SELECT * FROM orders ORDER BY created_at DESC LIMIT ? OFFSET ?", (limit, offset)
            )
        else:
            rows = self._fetch_all(
                "SELECT * FROM orders WHERE status = ? ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (status.value, limit, offset),
            )
        return [self._map_row(r) for r in rows]

    def count(self, status: OrderStatus | None = None) -> int:
        if status is None:
            return int(self._scalar("SELECT COUNT(*) AS n FROM orders"))
        return int(
            self._scalar("SELECT COUNT(*) AS n FROM orders WHERE status = ?", (status.value,))
        )

    def list_all(self) -> list[Order]:
        rows = self._fetch_all("SELECT * FROM orders ORDER BY created_at DESC")
        return [self._map_row(r) for r in rows]

    def save(self, order: Order) -> Order:
        values = (
            str(order.id),
            str(order.customer_id),
            order.status.value,
            order.subtotal,
            order.affiliate_discount,
            order.coupon_discount,
            order.tax_amount,
            order.shipping_amount,
            order.total,
            order.currency,
            uuid_str(order.affiliate_id),
            order.affiliate_code,
            order.affiliate_session_id,
            order.coupon_code,
            order.payment_intent_id,
            int(order.marketing_consent_granted),
            order.client_ip,
            order.client_user_agent,
            order.fbp,
            order.fbc,
            order.tracking_number,
            order.carrier,
            order.created_at.isoformat(),
            order.updated_at.isoformat(),
            dt_str(order.paid_at),
            dt_str(order.shipped_at),
            dt_str(order.delivered_at),
            dt_str(order.cancelled_at),
        )
        updates = ", ".join(
            f"{c}=excluded.{c}" for c in self._COLUMNS.split(", ") if c not in ("id", "created_at")
        )
        with self._conn() as conn:
            conn.execute(
                f"INSERT INTO orders ({self._COLUMNS}) VALUES ({', '.join('?' * len(values))}) "
                f"ON CONFLICT(id) DO UPDATE SET {updates}",
                values,
            )
            conn.execute("DELETE FROM order_items WHERE order_id = ?", (str(order.id),))
            for position, item in enumerate(order.items):
                conn.execute(
                    """
                    INSERT INTO order_items (
                        id, order_id, product_id, product_name, quantity, unit_price, sku, position
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(item.id),
                        str(order.id),
                        str(item.product_id),
                        item.product_name,
                        item.quantity,
                        item.unit_price,
                        item.sku,
                        position,
                    ),
                )
        return order

    def _items(self, order_id: str) -> list[OrderItem]:
        rows = self._fetch_all(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY position", (order_id,)
        )
        return [
            OrderItem(
                id=UUID(r["id"]),
                order_id=UUID(r["order_id"]),
                product_id=UUID(r["product_id"]),
                product_name=r["product_name"],
                quantity=r["quantity"],
                unit_price=r["unit_price"],
                sku=r["sku"],
            )
            for r in rows
        ]

    def _map_row(self, row: dict[str, Any]) -> Order:
        return Order(
            id=UUID(row["id"]),
            customer_id=UUID(row["customer_id"]),
            status=OrderStatus(row["status"]),
            items=self._items(row["id"]),
            subtotal=row["subtotal"],
            affiliate_discount=row["affiliate_discount"],
            coupon_discount=row["coupon_discount"],
            tax_amount=row["tax_amount"],
            shipping_amount=row["shipping_amount"],
            total=row["total"],
            currency=row["currency"],
            affiliate_id=parse_uuid(row["affiliate_id"]),
            affiliate_code=row["affiliate_code"],
            affiliate_session_id=row["affiliate_session_id"],
            coupon_code=row["coupon_code"],
            payment_intent_id=row["payment_intent_id"],
            marketing_consent_granted=bool(row["marketing_consent_granted"]),
            client_ip=row["client_ip"],
            client_user_agent=row["client_user_agent"],
            fbp=row["fbp"],
            fbc=row["fbc"],
            tracking_number=row["tracking_number"],
            carrier=row["carrier"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
            paid_at=parse_dt(row["paid_at"]),
            shipped_at=parse_dt(row["shipped_at"]),
            delivered_at=parse_dt(row["delivered_at"]),
            cancelled_at=parse_dt(row["cancelled_at"]),
        )


class SQLiteCouponRepo(SQLiteRepoBase):
    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        row = self._fetch_one("SELECT * FROM coupons WHERE id = ?", (str(coupon_id),))
        return self._map_row(row) if row else None

    def get_by_code(self, code: str) -> Coupon | None:
        row = self._fetch_one("SELECT * FROM coupons WHERE code = ?", (code.strip().upper(),))
        return self._map_row(row) if row else None

    def list_all(self) -> list[Coupon]:
        rows = self._fetch_all("SELECT * FROM coupons ORDER BY created_at DESC")
        return [self._map_row(r) for r in rows]

    def save(self, coupon: Coupon) -> Coupon:
        self._execute(
            """
            INSERT INTO coupons (
                id, code, type, value, min_order_amount, max_discount_amount, max_redemptions,
                per_customer_limit, times_used, starts_at, ends_at, active,
                block_affiliate_commission, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                code=excluded.code,
                type=excluded.type,
                value=excluded.value,
                min_order_amount=excluded.min_order_amount,
                max_discount_amount=excluded.max_discount_amount,
                max_redemptions=excluded.max_redemptions,
                per_customer_limit=excluded.per_customer_limit,
                times_used=excluded.times_used,
                starts_at=excluded.starts_at,
                ends_at=excluded.ends_at,
                active=excluded.active,
                block_affiliate_commission=excluded.block_affiliate_commission
            """,
            (
                str(coupon.id),
                coupon.code,
                coupon.type.value,
                coupon.value,
                coupon.min_order_amount,
                coupon.max_discount_amount,
                coupon.max_redemptions,
                coupon.per_customer_limit,
                coupon.times_used,
                dt_str(coupon.starts_at),
                dt_str(coupon.ends_at),
                int(coupon.active),
                int(coupon.block_affiliate_commission),
                coupon.created_at.isoformat(),
            ),
        )
        return coupon

    def count_redemptions(self, coupon_id: UUID, customer_id: UUID) -> int:
        return int(
            self._scalar(
                "SELECT COUNT(*) AS n FROM coupon_redemptions WHERE coupon_id = ? AND customer_id = ?",
                (str(coupon_id), str(customer_id)),
            )
        )

    def get_redemption_for_order(self, order_id: UUID) -> CouponRedemption | None:
        row = self._fetch_one(
            "SELECT * FROM coupon_redemptions WHERE order_id = ?", (str(order_id),)
        )
        if not row:
            return None
        return CouponRedemption(
            id=UUID(row["id"]),
            coupon_id=UUID(row["coupon_id"]),
            order_id=UUID(row["order_id"]),
            customer_id=parse_uuid(row["customer_id"]),
            discount_amount=row["discount_amount"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
        )

    def save_redemption(self, redemption: CouponRedemption) -> CouponRedemption:
        self._execute(
            """
            INSERT INTO coupon_redemptions (
                id, coupon_id, order_id, customer_id, discount_amount, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(redemption.id),
                str(redemption.coupon_id),
                str(redemption.order_id),
                uuid_str(redemption.customer_id),
                redemption.discount_amount,
                redemption.created_at.isoformat(),
            ),
        )
        return redemption

    def _map_row(self, row: dict[str, Any]) -> Coupon:
        return Coupon(
            id=UUID(row["id"]),
            code=row["code"],
            type=CouponType(row["type"]),
            value=row["value"],
            min_order_amount=row["min_order_amount"],
            max_discount_amount=row["max_discount_amount"],
            max_redemptions=row["max_redemptions"],
            per_customer_limit=row["per_customer_limit"],
            times_used=row["times_used"],
            starts_at=parse_dt(row["starts_at"]),
            ends_at=parse_dt(row["ends_at"]),
            active=bool(row["active"]),
            block_affiliate_commission=bool(row["block_affiliate_commission"]),
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
        )


class SQLiteRefundRepo(SQLiteRepoBase):
    def get_by_id(self, refund_id: UUID) -> Refund | None:
        row = self._fetch_one("SELECT * FROM refunds WHERE id = ?", (str(refund_id),))
        return self._map_row(row) if row else None

    def get_by_gateway_id(self, gateway_refund_id: str) -> Refund | None:
        row = self._fetch_one(
            "SELECT * FROM refunds WHERE gateway_refund_id = ?", (gateway_refund_id,)
        )
        return self._map_row(row) if row else None

    def list_for_order(self, order_id: UUID) -> list[Refund]:
        rows = self._fetch_all(
            "SELECT * FROM refunds WHERE order_id = ? ORDER BY created_at", (str(order_id),)
        )
        return [self._map_row(r) for r in rows]

    def save(self, refund: Refund) -> Refund:
        self._execute(
            """
            INSERT INTO refunds (
                id, order_id, amount, reason_code, reason, type, source, status,
                gateway_refund_id, created_by, created_at, updated_at, processed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                gateway_refund_id=excluded.gateway_refund_id,
                reason=excluded.reason,
                updated_at=excluded.updated_at,
                processed_at=excluded.processed_at
            """,
            (
                str(refund.id),
                str(refund.order_id),
                refund.amount,
                refund.reason_code,
                refund.reason,
                refund.type,
                refund.source,
                refund.status.value,
                refund.gateway_refund_id,
                refund.created_by,
                refund.created_at.isoformat(),
                refund.updated_at.isoformat(),
                dt_str(refund.processed_at),
            ),
        )
        return refund

    def _map_row(self, row: dict[str, Any]) -> Refund:
        return Refund(
            id=UUID(row["id"]),
            order_id=UUID(row["order_id"]),
            amount=row["amount"],
            reason_code=row["reason_code"],
            reason=row["reason"],
            type=row["type"],
            source=row["source"],
            status=RefundStatus(row["status"]),
            gateway_refund_id=row["gateway_refund_id"],
            created_by=row["created_by"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
            processed_at=parse_dt(row["processed_at"]),
        )
