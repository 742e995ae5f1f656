"""
Checkout component ports.

Checkout touches most of the store, so its ports are bundled into
CheckoutPorts instead of being passed one by one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from src.components.affiliates.ports import AffiliateRepoPort
from src.components.capi.ports import CapiEventRepoPort
from src.components.catalog.ports import ProductRepoPort
from src.components.coupons.ports import CouponRepoPort
from src.components.orders.models import Customer, Order
from src.components.orders.ports import CustomerRepoPort, OrderRepoPort
from src.core.ports.payment import PaymentGatewayPort


class OrderConfirmationPort(Protocol):
    def order_confirmed(self, order: Order, customer: Customer) -> Any: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...


@dataclass
class CheckoutPorts:
    products: ProductRepoPort
    customers: CustomerRepoPort
    orders: OrderRepoPort
    coupons: CouponRepoPort
    affiliates: AffiliateRepoPort
    gateway: PaymentGatewayPort
    time: TimePort
    capi_events: CapiEventRepoPort | None = None
    mailer: OrderConfirmationPort | None = None
