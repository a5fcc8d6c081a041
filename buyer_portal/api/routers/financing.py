
from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from starlette.concurrency import run_in_threadpool
from ..deps import FinancingOptionsResponse, get_fee_config, get_invoice_store
from ...core.errors import InvoiceNotFound
from ...models.invoice import QuoteRequest
from ...services.fee_calculator import FeeConfig, calculate_quote

router = APIRouter(prefix="/financing", tags=["financing"])


@router.get("/options", response_model=FinancingOptionsResponse)
async def financing_options(config: FeeConfig = Depends(get_fee_config)):
    """Active pricing model and the extension lengths the slider may offer."""
    return FinancingOptionsResponse(
        pricing_model=config.pricing_model.value,
        fee_rate=str(config.active_rate),
        fee_rate_per_period=str(config.fee_rate_per_period),
        fee_rate_per_day=str(config.fee_rate_per_day),
        allowed_extension_days=config.policy.allowed_days(),
    )


@router.post("/quote")
async def financing_quote(
    req: QuoteRequest,
    config: FeeConfig = Depends(get_fee_config),
    store=Depends(get_invoice_store),
):
    """
    Quote a FortusFlex payment extension.

    Example request:
    {"invoice_id": "…", "extension_days": 45}
    or
    {"amount": "10000", "due_date": "2026-03-15", "extension_days": 45}

    Example response (per_period model, 1.5% per started 30 days):
    {"fee": "300.00", "totalCost": "10300.00", "newDueDate": "2026-04-29", ...}

    An amount that cannot be read yields a zero quote rather than an error.
    """
    if req.invoice_id:
        invoice = await run_in_threadpool(store.get_invoice, req.invoice_id)
        if invoice is None:
            raise InvoiceNotFound(req.invoice_id)
        amount, due_date = invoice.amount, invoice.due_date
    elif req.amount is not None or req.due_date is not None:
        amount, due_date = req.amount, req.due_date
    else:
        raise HTTPException(status_code=422, detail="Provide invoice_id or amount and due_date")

    quote = calculate_quote(amount, due_date, req.extension_days, config)
    logger.info(
        "Financing quote calculated",
        invoice_id=req.invoice_id,
        extension_days=req.extension_days,
        pricing_model=quote.pricing_model.value,
        fee=str(quote.fee),
    )
    return quote.to_wire()
