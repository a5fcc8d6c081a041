"""
SQLite-based invoice store.

Provides persistent storage of extracted invoices with an upsert keyed on
invoice number, mirroring the hosted table the portal writes to.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Optional
from loguru import logger
from ...core.errors import InvalidStatusTransition, PersistenceError
from ...models.invoice import InvoiceRecord, InvoiceStatus
from ..invoice_lifecycle import apply_transition
from ..invoice_types import ExtractionResult
from .base import InvoiceStoreBase, matches_search, record_from_extraction

COLUMNS = (
    "id, invoice_number, supplier, amount, due_date, ocr_number, bankgiro, pdf_url, "
    "status, payout_date, payout_amount, created_at, updated_at"
)


class SQLiteInvoiceStore(InvoiceStoreBase):
    """
    SQLite-backed invoice store.

    Features:
    - Persistent storage across application restarts
    - Upsert on invoice_number (NULL numbers never collide, so invoices
      without a natural key are never merged)
    - Status CHECK constraint matching the lifecycle states
    - Thread-safe operations (connection per call, SQLite's built-in locking)
    """

    def __init__(self, db_path: str = "invoices.db"):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: invoices.db)
        """
        self.db_path = db_path
        self._init_database()

    @contextmanager
    def _connection(self):
        """Connection with row factory; commits on success, maps sqlite errors."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open invoice database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Invoice database error: {e}")
            raise PersistenceError(f"Invoice database error: {e}") from e
        finally:
            conn.close()

    def _init_database(self):
        """Create invoices table if it doesn't exist"""
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS invoices (
                    id TEXT PRIMARY KEY,
                    invoice_number TEXT UNIQUE,
                    supplier TEXT NOT NULL,
                    amount TEXT,
                    due_date TEXT,
                    ocr_number TEXT,
                    bankgiro TEXT,
                    pdf_url TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    payout_date TEXT,
                    payout_amount TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    CHECK (status IN ('pending', 'approved', 'paid'))
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_status ON invoices(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_created_at ON invoices(created_at)")

    @staticmethod
    def _to_record(row: sqlite3.Row) -> InvoiceRecord:
        return InvoiceRecord(**dict(row))

    def _fetch_one(self, conn, where: str, params: tuple) -> Optional[InvoiceRecord]:
        row = conn.execute(f"SELECT {COLUMNS} FROM invoices WHERE {where}", params).fetchone()
        return self._to_record(row) if row else None

    def upsert_extraction(self, result: ExtractionResult, pdf_url: str | None = None) -> InvoiceRecord:
        record = record_from_extraction(result, pdf_url)

        with self._connection() as conn:
            conn.execute("""
                INSERT INTO invoices (id, invoice_number, supplier, amount, due_date, ocr_number,
                                      bankgiro, pdf_url, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 'pending', ?, ?)
                ON CONFLICT(invoice_number) DO UPDATE SET
                    supplier = excluded.supplier,
                    amount = excluded.amount,
                    due_date = excluded.due_date,
                    ocr_number = excluded.ocr_number,
                    bankgiro = excluded.bankgiro,
                    pdf_url = COALESCE(excluded.pdf_url, invoices.pdf_url),
                    updated_at = excluded.updated_at
            """, (
                record.id,
                record.invoice_number,
                record.supplier,
                str(record.amount) if record.amount is not None else None,
                record.due_date.isoformat() if record.due_date else None,
                record.ocr_number,
                record.bankgiro,
                record.pdf_url,
                record.created_at,
                record.updated_at,
            ))

            if record.invoice_number is None:
                stored = self._fetch_one(conn, "id = ?", (record.id,))
            else:
                stored = self._fetch_one(conn, "invoice_number = ?", (record.invoice_number,))

        logger.info("Invoice upserted", invoice_id=stored.id, invoice_number=stored.invoice_number)
        return stored

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        with self._connection() as conn:
            return self._fetch_one(conn, "id = ?", (invoice_id,))

    def list_invoices(self, search: str | None = None, status: InvoiceStatus | None = None) -> list[InvoiceRecord]:
        with self._connection() as conn:
            if status is None:
                rows = conn.execute(
                    f"SELECT {COLUMNS} FROM invoices ORDER BY created_at DESC"
                ).fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {COLUMNS} FROM invoices WHERE status = ? ORDER BY created_at DESC",
                    (InvoiceStatus(status).value,),
                ).fetchall()

        # casefold handles å/ä/ö consistently, which SQLite's LIKE does not
        return [inv for inv in map(self._to_record, rows) if matches_search(inv, search)]

    def update_status(
        self,
        invoice_id: str,
        status: InvoiceStatus,
        payout_date: datetime | None = None,
        payout_amount: Decimal | None = None,
    ) -> Optional[InvoiceRecord]:
        with self._connection() as conn:
            current = self._fetch_one(conn, "id = ?", (invoice_id,))
            if current is None:
                return None

            updated = apply_transition(current, status, payout_date, payout_amount)

            cursor = conn.execute("""
                UPDATE invoices
                SET status = ?,
                    payout_date = ?,
                    payout_amount = ?,
                    updated_at = ?
                WHERE id = ? AND status = ?
            """, (
                updated.status.value,
                updated.payout_date.isoformat() if updated.payout_date else None,
                str(updated.payout_amount) if updated.payout_amount is not None else None,
                updated.updated_at,
                invoice_id,
                current.status.value,
            ))

            # Another writer moved the invoice between our read and write
            if cursor.rowcount == 0:
                raise InvalidStatusTransition(current.status.value, updated.status.value)

        return updated

    def delete_invoice(self, invoice_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
            return cursor.rowcount > 0
