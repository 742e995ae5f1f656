import logging
import os
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.clock import SystemClock
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.dev_sms import DevSmsAdapter
from src.adapters.meta_graph import MetaGraphClient
from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.sqlite.affiliates import SQLiteAffiliateRepo, SQLiteInviteRepo, SQLitePayoutRepo
from src.adapters.sqlite.commerce import (
    SQLiteCouponRepo,
    SQLiteCustomerRepo,
    SQLiteOrderRepo,
    SQLiteProductRepo,
    SQLiteRefundRepo,
)
from src.adapters.sqlite.content import (
    SQLitePageRepo,
    SQLitePostRepo,
    SQLiteSnapshotRepo,
    SQLiteThemeRepo,
)
from src.adapters.sqlite.marketing import (
    SQLiteCapiEventRepo,
    SQLiteEventRepo,
    SQLiteNewsletterRepo,
)
from src.adapters.sqlite.repos import SQLiteAuditRepo, SQLiteSiteSettingsRepo, SQLiteUserRepo
from src.api.auth_utils import (
    COOKIE_NAME,
    CUSTOMER_COOKIE_NAME,
    decode_access_token,
    token_from_cookie,
)
from src.app_shell.rate_limit import RateLimiter
from src.components.affiliates import load_settings, settings_from_rules
from src.components.affiliates.models import Affiliate, AffiliateSettings
from src.components.audit import AuditRecorder
from src.components.capi import enqueue_refund
from src.components.capi.models import MetaConfig
from src.components.checkout.models import CheckoutConfig
from src.components.checkout.ports import CheckoutPorts
from src.components.cms.models import CmsConfig
from src.components.consent.component import PurchaseDedupe
from src.components.consent.models import IngestConfig
from src.components.newsletter.models import NewsletterConfig
from src.components.notifications import StorefrontMailer
from src.components.notifications.models import StoreInfo
from src.components.orders.models import Order
from src.components.refunds.models import Refund
from src.components.settings import get_default_settings
from src.domain.entities import CustomerPrincipal, User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("PP_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "power_plunge.db")
        self.migrations_dir = str(self.base_dir / "migrations")
        self.rules_path = Path(os.environ.get("PP_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.base_url = os.environ.get("BASE_URL", "http://localhost:8000").rstrip("/")
        self.affiliate_ip_salt = os.environ.get("AFFILIATE_IP_SALT", "power-plunge-affiliate-salt")
        self.meta_pixel_id = os.environ.get("META_PIXEL_ID") or None
        self.meta_access_token = os.environ.get("META_CAPI_ACCESS_TOKEN") or None
        self.meta_test_event_code = os.environ.get("META_TEST_EVENT_CODE") or None
        self.meta_app_secret = os.environ.get("META_APP_SECRET") or None


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_site_settings_repo(settings: Settings = Depends(get_settings)) -> SQLiteSiteSettingsRepo:
    return SQLiteSiteSettingsRepo(settings.db_path)


def get_audit_repo(settings: Settings = Depends(get_settings)) -> SQLiteAuditRepo:
    return SQLiteAuditRepo(settings.db_path)


def get_product_repo(settings: Settings = Depends(get_settings)) -> SQLiteProductRepo:
    return SQLiteProductRepo(settings.db_path)


def get_customer_repo(settings: Settings = Depends(get_settings)) -> SQLiteCustomerRepo:
    return SQLiteCustomerRepo(settings.db_path)


def get_order_repo(settings: Settings = Depends(get_settings)) -> SQLiteOrderRepo:
    return SQLiteOrderRepo(settings.db_path)


def get_coupon_repo(settings: Settings = Depends(get_settings)) -> SQLiteCouponRepo:
    return SQLiteCouponRepo(settings.db_path)


def get_refund_repo(settings: Settings = Depends(get_settings)) -> SQLiteRefundRepo:
    return SQLiteRefundRepo(settings.db_path)


def get_affiliate_repo(settings: Settings = Depends(get_settings)) -> SQLiteAffiliateRepo:
    return SQLiteAffiliateRepo(settings.db_path)


def get_invite_repo(settings: Settings = Depends(get_settings)) -> SQLiteInviteRepo:
    return SQLiteInviteRepo(settings.db_path)


def get_payout_repo(settings: Settings = Depends(get_settings)) -> SQLitePayoutRepo:
    return SQLitePayoutRepo(settings.db_path)


def get_page_repo(settings: Settings = Depends(get_settings)) -> SQLitePageRepo:
    return SQLitePageRepo(settings.db_path)


def get_post_repo(settings: Settings = Depends(get_settings)) -> SQLitePostRepo:
    return SQLitePostRepo(settings.db_path)


def get_theme_repo(settings: Settings = Depends(get_settings)) -> SQLiteThemeRepo:
    return SQLiteThemeRepo(settings.db_path)


def get_snapshot_repo(settings: Settings = Depends(get_settings)) -> SQLiteSnapshotRepo:
    return SQLiteSnapshotRepo(settings.db_path)


def get_capi_repo(settings: Settings = Depends(get_settings)) -> SQLiteCapiEventRepo:
    return SQLiteCapiEventRepo(settings.db_path)


def get_newsletter_repo(settings: Settings = Depends(get_settings)) -> SQLiteNewsletterRepo:
    return SQLiteNewsletterRepo(settings.db_path)


def get_event_repo(settings: Settings = Depends(get_settings)) -> SQLiteEventRepo:
    return SQLiteEventRepo(settings.db_path)


# --- Singletons ---
# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


_rate_limiter_instance: RateLimiter | None = None


def get_rate_limiter(rules: Rules = Depends(get_rules)) -> RateLimiter:
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter(rules.rate_limits, get_clock())
    return _rate_limiter_instance


_purchase_dedupe_instance: PurchaseDedupe | None = None


def get_purchase_dedupe(rules: Rules = Depends(get_rules)) -> PurchaseDedupe:
    global _purchase_dedupe_instance
    if _purchase_dedupe_instance is None:
        _purchase_dedupe_instance = PurchaseDedupe(rules.consent.purchase_dedupe_size)
    return _purchase_dedupe_instance


_payment_gateway_instance: PaymentStubAdapter | None = None


def get_payment_gateway() -> PaymentStubAdapter:
    global _payment_gateway_instance
    if _payment_gateway_instance is None:
        _payment_gateway_instance = PaymentStubAdapter(
            webhook_secret=os.environ.get("PAYMENT_WEBHOOK_SECRET", "whsec_dev")
        )
    return _payment_gateway_instance


_email_sender_instance: DevEmailAdapter | None = None


def get_email_sender() -> DevEmailAdapter:
    global _email_sender_instance
    if _email_sender_instance is None:
        _email_sender_instance = DevEmailAdapter()
    return _email_sender_instance


_sms_instance: DevSmsAdapter | None = None


def get_sms() -> DevSmsAdapter:
    global _sms_instance
    if _sms_instance is None:
        _sms_instance = DevSmsAdapter()
    return _sms_instance


# --- Configuration objects ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


def get_meta_config(settings: Settings = Depends(get_settings)) -> MetaConfig:
    return MetaConfig(
        pixel_id=settings.meta_pixel_id,
        access_token=settings.meta_access_token,
        test_event_code=settings.meta_test_event_code,
    )


def get_meta_client(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> MetaGraphClient | None:
    if not settings.meta_access_token:
        return None
    return MetaGraphClient(
        settings.meta_access_token,
        app_secret=settings.meta_app_secret,
        version=rules.capi.graph_api_version,
    )


def get_checkout_config(
    settings: Settings = Depends(get_settings), rules: Rules = Depends(get_rules)
) -> CheckoutConfig:
    return CheckoutConfig(
        currency=rules.store.currency,
        tax_rate_percent=rules.store.tax_rate_percent,
        flat_shipping_amount=rules.store.flat_shipping_amount,
        free_shipping_threshold=rules.store.free_shipping_threshold,
        base_url=settings.base_url,
    )


def get_cms_config(rules: Rules = Depends(get_rules)) -> CmsConfig:
    return CmsConfig(
        max_blocks=rules.blocks.max_blocks_per_page,
        allowed_types=tuple(rules.blocks.allowed_types) or None,
        reserved_slugs=tuple(rules.store.reserved_slugs),
    )


def get_ingest_config(rules: Rules = Depends(get_rules)) -> IngestConfig:
    return IngestConfig(
        bot_patterns=tuple(rules.analytics.bot_patterns),
        dedupe_ttl_seconds=rules.analytics.dedupe_ttl_seconds,
        consent_version=rules.consent.version,
    )


def get_newsletter_config(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
) -> NewsletterConfig:
    site = settings_repo.get() or get_default_settings()
    return NewsletterConfig(
        rate_limit_per_ip_per_hour=rules.rate_limits.newsletter.max_requests or 10,
        site_name=site.store_name,
        base_url=settings.base_url,
    )


def get_affiliate_settings(
    rules: Rules = Depends(get_rules),
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
) -> AffiliateSettings:
    return load_settings(repo, settings_from_rules(rules.affiliates))


def get_mailer(
    settings: Settings = Depends(get_settings),
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    sender: DevEmailAdapter = Depends(get_email_sender),
) -> StorefrontMailer:
    site = settings_repo.get() or get_default_settings()
    store = StoreInfo(
        name=site.store_name, base_url=settings.base_url, support_email=site.support_email
    )
    return StorefrontMailer(sender, store)


def get_audit_recorder(repo: SQLiteAuditRepo = Depends(get_audit_repo)) -> AuditRecorder:
    return AuditRecorder(repo, get_clock())


def get_checkout_ports(
    products: SQLiteProductRepo = Depends(get_product_repo),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    coupons: SQLiteCouponRepo = Depends(get_coupon_repo),
    affiliates: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    gateway: PaymentStubAdapter = Depends(get_payment_gateway),
    capi_events: SQLiteCapiEventRepo = Depends(get_capi_repo),
    mailer: StorefrontMailer = Depends(get_mailer),
) -> CheckoutPorts:
    return CheckoutPorts(
        products=products,
        customers=customers,
        orders=orders,
        coupons=coupons,
        affiliates=affiliates,
        gateway=gateway,
        time=get_clock(),
        capi_events=capi_events,
        mailer=mailer,
    )


class RefundFollowUp:
    """Queues the CAPI refund event and emails the customer once a refund is processed."""

    def __init__(
        self,
        customers: SQLiteCustomerRepo,
        capi_events: SQLiteCapiEventRepo,
        meta: MetaConfig,
        mailer: StorefrontMailer,
        base_url: str,
    ) -> None:
        self.customers = customers
        self.capi_events = capi_events
        self.meta = meta
        self.mailer = mailer
        self.base_url = base_url

    def refund_processed(self, refund: Refund, order: Order) -> None:
        customer = self.customers.get_by_id(order.customer_id)
        enqueue_refund(
            refund.id,
            refund.amount,
            refund.processed_at or refund.updated_at,
            order,
            customer,
            self.capi_events,
            self.meta,
            get_clock(),
            self.base_url,
        )
        if customer is not None:
            self.mailer.refund_issued(order, customer, refund.amount)


def get_refund_events(
    settings: Settings = Depends(get_settings),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    capi_events: SQLiteCapiEventRepo = Depends(get_capi_repo),
    meta: MetaConfig = Depends(get_meta_config),
    mailer: StorefrontMailer = Depends(get_mailer),
) -> RefundFollowUp:
    return RefundFollowUp(customers, capi_events, meta, mailer, settings.base_url)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User:
    # Cookie wins over the Authorization header
    token = token_from_cookie(request.cookies.get(COOKIE_NAME)) or token

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token, kind="admin")
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None or not isinstance(user_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = user_repo.get_by_id(UUID(user_id))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )

    return user


def require_permission(action: str) -> Callable[..., User]:
    """Dependency factory: the current user, or 403 unless their roles allow `action`."""

    def checker(
        user: User = Depends(get_current_user),
        policy: PolicyEngine = Depends(get_policy),
    ) -> User:
        if not policy.can(user, action):
            logger.warning(f"Permission denied: {user.id} lacks {action}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return checker


async def get_current_customer(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> CustomerPrincipal:
    token = token_from_cookie(request.cookies.get(CUSTOMER_COOKIE_NAME)) or token
    payload = decode_access_token(token, kind="customer") if token else None
    if not payload or not isinstance(payload.get("sub"), str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CustomerPrincipal(customer_id=UUID(payload["sub"]), email=payload.get("email", ""))


def get_current_affiliate(
    customer: CustomerPrincipal = Depends(get_current_customer),
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
) -> Affiliate:
    affiliate = repo.get_by_customer_id(customer.customer_id)
    if affiliate is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not an affiliate")
    return affiliate
