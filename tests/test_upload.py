import io
from decimal import Decimal
from buyer_portal.api import deps
from buyer_portal.api.main import app
from buyer_portal.core.errors import PersistenceError
from buyer_portal.services.storage import InMemoryDocumentStorage

NOT_FOUND = "Ej hittat"


def test_upload_success_pdf_bytes(client, store):
    files = {"file": ("faktura.pdf", io.BytesIO(b"%PDF-1.4 minimal"), "application/pdf")}
    r = client.post("/invoices/upload", files=files)
    assert r.status_code == 200

    body = r.json()
    assert body["success"] is True
    # Contract: keys present
    for k in ["amount", "dueDate", "supplier", "invoiceNumber", "ocrNumber", "bankgiro"]:
        assert k in body["parsed"]
    assert body["parsed"]["amount"] == "12500.50 kr"
    assert body["pdfUrl"] == "memory://invoices/1234567890123-faktura.pdf"
    assert body["invoice"]["status"] == "pending"

    stored = store.list_invoices()
    assert len(stored) == 1
    assert stored[0].amount == Decimal("12500.50")


def test_upload_raw_body(client, fake_ocr):
    r = client.post(
        "/invoices/upload",
        content=b"%PDF-1.4 raw",
        headers={"content-type": "application/pdf", "x-file-name": "raw.pdf"},
    )
    assert r.status_code == 200
    assert fake_ocr.calls[0][0] == "raw.pdf"


def test_upload_missing_file_returns_422(client):
    r = client.post("/invoices/upload")
    assert r.status_code == 422


def test_upload_ocr_failure_returns_502(client, store, fake_ocr):
    fake_ocr.error = "Unable to recognize the file type"

    files = {"file": ("scan.pdf", io.BytesIO(b"garbage"), "application/pdf")}
    r = client.post("/invoices/upload", files=files)

    assert r.status_code == 502
    assert r.json() == {"error": "Unable to recognize the file type"}
    assert store.list_invoices() == []


def test_upload_unreadable_invoice_returns_sentinels(client, fake_ocr):
    fake_ocr.text = "nothing useful here"

    files = {"file": ("scan.pdf", io.BytesIO(b"%PDF"), "application/pdf")}
    r = client.post("/invoices/upload", files=files)

    assert r.status_code == 200
    parsed = r.json()["parsed"]
    assert parsed["amount"] == NOT_FOUND
    assert parsed["invoiceNumber"] == NOT_FOUND
    assert r.json()["invoice"]["invoice_number"] is None


def test_upload_persistence_failure_reports_parsed_fields(client, store):
    class FailingDocuments(InMemoryDocumentStorage):
        def upload(self, file_name, content, content_type="application/pdf"):
            raise PersistenceError("bucket full")

    app.dependency_overrides[deps.get_document_storage] = lambda: FailingDocuments()

    files = {"file": ("faktura.pdf", io.BytesIO(b"%PDF"), "application/pdf")}
    r = client.post("/invoices/upload", files=files)

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "bucket full"
    assert body["parsed"]["invoiceNumber"] == "1234567890123"
    assert store.list_invoices() == []


def test_upload_same_invoice_twice_upserts(client, store):
    for _ in range(2):
        files = {"file": ("faktura.pdf", io.BytesIO(b"%PDF"), "application/pdf")}
        assert client.post("/invoices/upload", files=files).status_code == 200

    assert len(store.list_invoices()) == 1


def test_batch_upload_mixed_results(client, store):
    files = [
        ("files", ("a.pdf", io.BytesIO(b"%PDF a"), "application/pdf")),
        ("files", ("empty.pdf", io.BytesIO(b""), "application/pdf")),
    ]
    r = client.post("/invoices/upload-batch", files=files)

    assert r.status_code == 200
    body = r.json()
    assert body["uploaded"] == 1
    assert body["failed"] == 1
    assert body["results"][0]["success"] is True
    assert body["results"][0]["invoice_id"] == store.list_invoices()[0].id
    assert body["results"][1] == {
        "file_name": "empty.pdf", "success": False, "parsed": None,
        "pdfUrl": None, "invoice_id": None, "error": "Empty file",
    }


def test_batch_upload_ocr_failure_is_per_file(client, fake_ocr):
    fake_ocr.error = "OCR failed"
    files = [("files", ("a.pdf", io.BytesIO(b"%PDF"), "application/pdf"))]

    r = client.post("/invoices/upload-batch", files=files)

    assert r.status_code == 200
    assert r.json()["results"][0]["error"] == "OCR failed"
    assert r.json()["failed"] == 1


def test_parse_text_endpoint(client):
    r = client.post("/invoices/parse", json={"text": "Summa (SEK) 12 500,00 (inkl. moms)\nFörfallodatum 2026-03-15"})

    assert r.status_code == 200
    body = r.json()
    assert body["parsed"]["amount"] == "12500.00 kr"
    assert body["parsed"]["dueDate"] == "2026-03-15"
    assert body["matches"]["due_date"]["line_index"] == 1
