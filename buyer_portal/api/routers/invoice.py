
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import Response
from loguru import logger
from starlette.concurrency import run_in_threadpool
from ..deps import (
    BatchItemResponse,
    BatchUploadResponse,
    UploadResponse,
    get_document_storage,
    get_invoice_store,
    get_ocr_client,
    get_settings,
)
from ...core.errors import InvoiceNotFound, PortalError
from ...models.invoice import InvoiceStatus, ParseRequest, StatusUpdateRequest
from ...services.field_extractor import extract_fields
from ...services.ingestion import ingest_document
from ...services.reporting import export_invoices_csv, summarize_invoices

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/upload", response_model=UploadResponse)
async def upload_invoice(
    request: Request,
    file: UploadFile = File(None),
    ocr=Depends(get_ocr_client),
    store=Depends(get_invoice_store),
    documents=Depends(get_document_storage),
    settings=Depends(get_settings),
):
    """
    Read an invoice with OCR, extract its fields and save it.

    Accepts either:
    - multipart/form-data (file upload via form)
    - application/pdf, image/* or application/octet-stream (raw binary body)

    Missing fields come back as "Ej hittat". OCR failures return 502 with a
    one-line message; save failures return 500 together with the parsed
    fields so the caller knows the document was read.
    """
    if file:
        content = await file.read()
        file_name = file.filename or "invoice.pdf"
        content_type = file.content_type or "application/pdf"
    else:
        content = await request.body()
        file_name = request.headers.get("x-file-name", "invoice.pdf")
        content_type = request.headers.get("content-type", "application/octet-stream")

    if not content:
        raise HTTPException(status_code=422, detail="No file provided (either multipart or raw body)")

    outcome = await run_in_threadpool(
        ingest_document,
        content,
        file_name,
        content_type,
        ocr=ocr,
        store=store,
        documents=documents,
        supplier=settings.supplier_name,
    )
    return UploadResponse(
        parsed=outcome.extraction.to_wire(),
        pdfUrl=outcome.pdf_url,
        invoice=outcome.invoice.model_dump(mode="json"),
    )


@router.post("/upload-batch", response_model=BatchUploadResponse)
async def upload_invoices(
    files: list[UploadFile] = File(...),
    ocr=Depends(get_ocr_client),
    store=Depends(get_invoice_store),
    documents=Depends(get_document_storage),
    settings=Depends(get_settings),
):
    """Upload several invoices; each file succeeds or fails on its own."""
    results = []
    for upload in files:
        name = upload.filename or "invoice.pdf"
        content = await upload.read()
        if not content:
            results.append(BatchItemResponse(file_name=name, success=False, error="Empty file"))
            continue
        try:
            outcome = await run_in_threadpool(
                ingest_document,
                content,
                name,
                upload.content_type or "application/pdf",
                ocr=ocr,
                store=store,
                documents=documents,
                supplier=settings.supplier_name,
            )
        except PortalError as e:
            logger.warning(f"Batch upload of {name} failed: {e.message}")
            parsed = getattr(e, "extraction", None)
            results.append(BatchItemResponse(
                file_name=name,
                success=False,
                parsed=parsed.to_wire() if parsed is not None else None,
                error=e.message,
            ))
            continue

        results.append(BatchItemResponse(
            file_name=name,
            success=True,
            parsed=outcome.extraction.to_wire(),
            pdfUrl=outcome.pdf_url,
            invoice_id=outcome.invoice.id,
        ))

    uploaded = sum(1 for r in results if r.success)
    return BatchUploadResponse(uploaded=uploaded, failed=len(results) - uploaded, results=results)


@router.post("/parse")
async def parse_text(req: ParseRequest, settings=Depends(get_settings)):
    """Run field extraction on already-recognised text (no OCR, nothing stored)."""
    result = extract_fields(req.text, supplier=settings.supplier_name)
    return {
        "parsed": result.to_wire(),
        "matches": {name: m.model_dump() for name, m in result.matches.items()},
    }


@router.get("")
async def list_invoices(
    search: str | None = None,
    status: InvoiceStatus | None = None,
    store=Depends(get_invoice_store),
):
    invoices = await run_in_threadpool(store.list_invoices, search, status)
    return {"total": len(invoices), "invoices": [inv.model_dump(mode="json") for inv in invoices]}


@router.get("/summary")
async def invoice_summary(store=Depends(get_invoice_store)):
    """Dashboard figures: counts per status, total amount and total paid out."""
    invoices = await run_in_threadpool(store.list_invoices)
    return summarize_invoices(invoices).model_dump(mode="json")


@router.get("/export.csv")
async def export_csv(store=Depends(get_invoice_store)):
    invoices = await run_in_threadpool(store.list_invoices)
    return Response(
        content=export_invoices_csv(invoices),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="fakturor.csv"'},
    )


@router.get("/{invoice_id}")
async def get_invoice(invoice_id: str, store=Depends(get_invoice_store)):
    invoice = await run_in_threadpool(store.get_invoice, invoice_id)
    if invoice is None:
        raise InvoiceNotFound(invoice_id)
    return invoice.model_dump(mode="json")


@router.post("/{invoice_id}/status")
async def update_status(invoice_id: str, req: StatusUpdateRequest, store=Depends(get_invoice_store)):
    """Move an invoice forward (pending -> approved -> paid); other moves return 409."""
    invoice = await run_in_threadpool(
        store.update_status, invoice_id, req.status, req.payout_date, req.payout_amount
    )
    if invoice is None:
        raise InvoiceNotFound(invoice_id)
    return invoice.model_dump(mode="json")


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, store=Depends(get_invoice_store)):
    deleted = await run_in_threadpool(store.delete_invoice, invoice_id)
    if not deleted:
        raise InvoiceNotFound(invoice_id)
    return {"deleted": invoice_id}
