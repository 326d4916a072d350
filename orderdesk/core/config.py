# orderdesk/core/config.py
from typing import List, Literal, Optional
from pathlib import Path
from uuid import UUID
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class PlanOption(BaseModel):
    """A subscription plan definition as written in configuration"""
    code: str
    display_name: str
    monthly_price: float
    annual_price: float
    duration_days: Optional[int] = None
    max_branches: int = 0
    max_users: int = 0
    max_orders_per_month: int = 0
    includes_inventory: bool = False
    includes_advanced_reporting: bool = False
    includes_whatsapp_billing: bool = False


class UsageThresholds(BaseModel):
    branches: float = 0.9
    users: float = 0.9
    orders_per_month: float = 0.9

    @field_validator("branches", "users", "orders_per_month")
    @classmethod
    def check_ratio(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("usage threshold must be in (0, 1]")
        return v


DEFAULT_PLANS: List[PlanOption] = [
    PlanOption(
        code="basic",
        display_name="Basic",
        monthly_price=99.0,
        annual_price=990.0,
        max_branches=1,
        max_users=5,
        max_orders_per_month=1000,
    ),
    PlanOption(
        code="standard",
        display_name="Standard",
        monthly_price=199.0,
        annual_price=1990.0,
        max_branches=3,
        max_users=15,
        max_orders_per_month=5000,
        includes_inventory=True,
    ),
    PlanOption(
        code="premium",
        display_name="Premium",
        monthly_price=399.0,
        annual_price=3990.0,
        max_branches=10,
        max_users=50,
        max_orders_per_month=0,
        includes_inventory=True,
        includes_advanced_reporting=True,
        includes_whatsapp_billing=True,
    ),
    PlanOption(
        code="enterprise",
        display_name="Enterprise",
        monthly_price=999.0,
        annual_price=9990.0,
        duration_days=365,
        max_branches=0,
        max_users=0,
        max_orders_per_month=0,
        includes_inventory=True,
        includes_advanced_reporting=True,
        includes_whatsapp_billing=True,
    ),
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "OrderDesk"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: List[str] = []

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./orderdesk.sqlite"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    @property
    def async_database_url(self) -> str:
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql+asyncpg://", 1)
        if self.DATABASE_URL.startswith("sqlite://"):
            return self.DATABASE_URL.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self.DATABASE_URL

    # Multi-tenancy
    TENANT_RESOLUTION_STRATEGY: Literal["header"] = "header"
    TENANT_HEADER_NAME: str = "X-Tenant-Code"
    BRANCH_HEADER_NAME: str = "X-Branch-Code"
    USER_HEADER_NAME: str = "X-User-Id"
    DEFAULT_TENANT_ID: Optional[UUID] = None

    # Subscriptions
    SUBSCRIPTION_PLANS: List[PlanOption] = DEFAULT_PLANS
    USAGE_THRESHOLDS: UsageThresholds = UsageThresholds()
    DEFAULT_BILLING_PROVIDER: str = "manual"
    SUBSCRIPTION_PERIOD_DAYS: int = 30

    # Worker
    USAGE_WORKER_INTERVAL_SECONDS: int = 30

    # Email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: str = "billing@orderdesk.app"

    # WhatsApp Business API
    WHATSAPP_API_URL: Optional[str] = None
    WHATSAPP_ACCESS_TOKEN: Optional[str] = None
    WHATSAPP_INVOICE_TEMPLATE: str = "order_invoice"

    # URL
    BILLING_PORTAL_URL: Optional[str] = None


settings = Settings()
