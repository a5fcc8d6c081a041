from .base import DocumentStorageBase, InvoiceStoreBase, build_document_name, matches_search
from .documents import LocalDocumentStorage
from .memory import InMemoryDocumentStorage, InMemoryInvoiceStore
from .sqlite_store import SQLiteInvoiceStore

__all__ = [
    "DocumentStorageBase",
    "InvoiceStoreBase",
    "InMemoryDocumentStorage",
    "InMemoryInvoiceStore",
    "LocalDocumentStorage",
    "SQLiteInvoiceStore",
    "build_document_name",
    "matches_search",
]
