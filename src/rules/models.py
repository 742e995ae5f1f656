from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    required_sections: list[str]

class PasswordHashingRules(BaseModel):
    algorithm: str
    min_length: int

class SessionCookieRules(BaseModel):
    secure: bool
    http_only: bool
    same_site: str

class SessionsRules(BaseModel):
    ttl_minutes: int
    customer_ttl_minutes: int = 60 * 24 * 7
    cookie: SessionCookieRules

class AuthRules(BaseModel):
    password_hashing: PasswordHashingRules
    sessions: SessionsRules

class RbacRules(BaseModel):
    roles: dict[str, list[str]]
    public_permissions: list[str]

class StoreRules(BaseModel):
    brand: str = "Power Plunge"
    default_category: str = "Cold Plunge"
    currency: str = "USD"
    tax_rate_percent: float = Field(default=0, ge=0, le=100)
    flat_shipping_amount: int = 0
    free_shipping_threshold: int = 0
    reserved_slugs: list[str] = Field(default_factory=list)

class AffiliateRules(BaseModel):
    default_commission_type: str = "PERCENT"
    default_commission_value: int = 10
    default_discount_type: str = "PERCENT"
    default_discount_value: int = 0
    minimum_payout: int = 5000
    cookie_duration_days: int = 30
    approval_days: int = 14
    ff_code_prefix: str = "FF"
    ff_commission_type: str = "PERCENT"
    ff_commission_value: int = 20
    ff_discount_type: str = "PERCENT"
    ff_discount_value: int = 20
    invite_expiry_days: int = 30
    code_random_length: int = 6

class BlocksRules(BaseModel):
    max_blocks_per_page: int
    allowed_types: list[str]

class ThemeRules(BaseModel):
    default_theme_id: str = "arctic-default"

class ConsentRules(BaseModel):
    storage_key: str = "pp_consent_v1"
    version: int = 1
    re_prompt_days: int = 365
    purchase_dedupe_size: int = 50
    item_list_limit: int = 20

class CapiRules(BaseModel):
    max_attempts: int = 8
    batch_size: int = 20
    max_delay_seconds: int = 3600
    base_delay_seconds: int = 15
    graph_api_version: str = "v24.0"

class AnalyticsRules(BaseModel):
    dedupe_ttl_seconds: int = 10
    bot_patterns: list[str] = Field(default_factory=list)

class RateLimitWindow(BaseModel):
    window_seconds: int
    max_attempts: int | None = None
    max_requests: int | None = None

class RateLimitRules(BaseModel):
    login: RateLimitWindow
    newsletter: RateLimitWindow
    affiliate_track: RateLimitWindow
    phone_verification: RateLimitWindow

class AdminBootstrapRules(BaseModel):
    enabled_if_no_users: bool
    required_env_when_enabled: list[str]

class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]
    bootstrap_admin: AdminBootstrapRules

class Rules(BaseModel):
    project: ProjectRules
    auth: AuthRules
    rbac: RbacRules
    store: StoreRules
    affiliates: AffiliateRules
    blocks: BlocksRules
    themes: ThemeRules
    consent: ConsentRules
    capi: CapiRules
    analytics: AnalyticsRules
    rate_limits: RateLimitRules
    ops: OpsRules
