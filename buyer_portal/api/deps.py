
from functools import lru_cache
from pydantic import BaseModel
from ..core.config import Settings, settings
from ..services.fee_calculator import FeeConfig
from ..services.ocr import OcrClientBase, create_ocr_client
from ..services.storage import (
    DocumentStorageBase,
    InvoiceStoreBase,
    LocalDocumentStorage,
    SQLiteInvoiceStore,
)


class UploadResponse(BaseModel):
    success: bool = True
    parsed: dict  # Wire shape with "Ej hittat" for missing fields
    pdfUrl: str
    invoice: dict


class BatchItemResponse(BaseModel):
    file_name: str
    success: bool
    parsed: dict | None = None
    pdfUrl: str | None = None
    invoice_id: str | None = None
    error: str | None = None


class BatchUploadResponse(BaseModel):
    uploaded: int
    failed: int
    results: list[BatchItemResponse]


class FinancingOptionsResponse(BaseModel):
    pricing_model: str
    fee_rate: str
    fee_rate_per_period: str
    fee_rate_per_day: str
    allowed_extension_days: list[int]


def get_settings() -> Settings:
    return settings


# Providers are the composition root: routes and services receive ports
# through Depends, and tests swap them via app.dependency_overrides.

@lru_cache
def get_invoice_store() -> InvoiceStoreBase:
    return SQLiteInvoiceStore(settings.invoice_db_path)


@lru_cache
def get_document_storage() -> DocumentStorageBase:
    return LocalDocumentStorage(settings.document_storage_dir, settings.document_base_url)


def get_ocr_client() -> OcrClientBase:
    return create_ocr_client(settings)


def get_fee_config() -> FeeConfig:
    return FeeConfig.from_settings(settings)
