
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("fortus-buyer-portal", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # OCR provider: "ocr_space" or "azure"
    ocr_provider: str = Field("ocr_space", alias="OCR_PROVIDER")
    ocr_timeout_seconds: float = Field(120.0, alias="OCR_TIMEOUT_SECONDS")

    # OCR.space
    ocr_space_api_key: str | None = Field(default=None, alias="OCR_SPACE_API_KEY")
    ocr_space_url: str = Field("https://api.ocr.space/parse/image", alias="OCR_SPACE_URL")
    ocr_language: str = Field("swe", alias="OCR_LANGUAGE")
    ocr_engine: int = Field(2, alias="OCR_ENGINE")

    # Azure Document Intelligence
    az_di_endpoint: str | None = Field(default=None, alias="AZ_DI_ENDPOINT")
    az_di_api_key: str | None = Field(default=None, alias="AZ_DI_API_KEY")

    # Persistence
    invoice_db_path: str = Field("invoices.db", alias="INVOICE_DB_PATH")
    document_storage_dir: str = Field("documents", alias="DOCUMENT_STORAGE_DIR")
    document_base_url: str = Field("http://127.0.0.1:8000/documents", alias="DOCUMENT_BASE_URL")

    # Supplier is fixed per integration, never parsed from OCR text
    supplier_name: str = Field("Telavox AB", alias="SUPPLIER_NAME")

    # FortusFlex pricing ("per_period" or "per_day")
    pricing_model: Literal["per_period", "per_day"] = Field("per_period", alias="PRICING_MODEL")
    fee_rate_per_period: float = Field(0.015, alias="FEE_RATE_PER_PERIOD")
    fee_rate_per_day: float = Field(0.0005, alias="FEE_RATE_PER_DAY")
    extension_min_days: int = Field(15, gt=0, alias="EXTENSION_MIN_DAYS")
    extension_max_days: int = Field(90, gt=0, alias="EXTENSION_MAX_DAYS")
    extension_step_days: int = Field(15, gt=0, alias="EXTENSION_STEP_DAYS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

settings = Settings()
