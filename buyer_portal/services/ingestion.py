"""
Upload pipeline: OCR -> field extraction -> document storage -> invoice upsert.

All collaborators are passed in; nothing here reaches for module-level clients.
"""

from loguru import logger
from pydantic import BaseModel
from ..core.errors import PersistenceError
from ..models.invoice import InvoiceRecord
from .field_extractor import DEFAULT_SUPPLIER, extract_fields
from .invoice_types import ExtractionResult
from .ocr import OcrClientBase
from .storage.base import DocumentStorageBase, InvoiceStoreBase, build_document_name


class IngestionOutcome(BaseModel):
    extraction: ExtractionResult
    invoice: InvoiceRecord
    pdf_url: str


def ingest_document(
    content: bytes,
    file_name: str,
    content_type: str,
    *,
    ocr: OcrClientBase,
    store: InvoiceStoreBase,
    documents: DocumentStorageBase,
    supplier: str = DEFAULT_SUPPLIER,
) -> IngestionOutcome:
    """
    Process one uploaded invoice file.

    Raises:
        OcrServiceError: the OCR call failed; nothing was extracted or stored
        PersistenceError: fields were extracted but saving failed; the
            exception carries the extraction
    """
    logger.info("Ingesting invoice document", file_name=file_name, size=len(content), content_type=content_type)

    # OcrServiceError propagates as-is: no extraction without text
    text = ocr.extract_text(content, file_name, content_type)
    extraction = extract_fields(text, supplier=supplier)

    stored_name = build_document_name(extraction.invoice_number, file_name)
    try:
        pdf_url = documents.upload(stored_name, content, content_type)
        invoice = store.upsert_extraction(extraction, pdf_url)
    except PersistenceError as e:
        raise PersistenceError(e.message, extraction=extraction, details=e.details) from e
    except Exception as e:
        logger.error(f"Saving invoice failed: {str(e)}")
        raise PersistenceError(f"Saving invoice failed: {str(e)}", extraction=extraction) from e

    logger.info(
        "Invoice ingested",
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        pdf_url=pdf_url,
    )
    return IngestionOutcome(extraction=extraction, invoice=invoice, pdf_url=pdf_url)
