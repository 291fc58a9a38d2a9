from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ERPNext REST backend
    ERPNEXT_BASE_URL: str = "http://localhost:8000"
    ERPNEXT_API_KEY: str = ""
    ERPNEXT_API_SECRET: str = ""
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Pricing defaults applied to new drafts and converted documents
    DEFAULT_CURRENCY: str = "BDT"
    DEFAULT_TAX_RATE_PERCENT: Decimal = Decimal("15")
    DEFAULT_APPLY_DISCOUNT_ON: str = "Grand Total"

    # Quotation validity
    QUOTATION_VALIDITY_DAYS: int = 30
    EXPIRY_WARNING_DAYS: int = 7

    # CORS origins, as a JSON list in the environment
    CORS_ORIGINS: list[str] = ["http://localhost:8081"]

    LOG_LEVEL: str = "INFO"


settings = Settings()
