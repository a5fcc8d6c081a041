
from abc import ABC, abstractmethod
import httpx
from loguru import logger
from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError
from ..core.errors import OcrServiceError


class OcrClientBase(ABC):
    """
    Port to an external OCR service.

    Implementations make a single bounded-timeout call and either return the
    recognised text or raise OcrServiceError with a one-line message.
    """

    @abstractmethod
    def extract_text(self, content: bytes, file_name: str, content_type: str = "application/pdf") -> str:
        pass


class OcrSpaceClient(OcrClientBase):
    """OCR.space parse/image endpoint, Swedish language model, engine 2."""

    def __init__(
        self,
        api_key: str,
        url: str = "https://api.ocr.space/parse/image",
        language: str = "swe",
        engine: int = 2,
        timeout: float = 120.0,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.language = language
        self.engine = engine
        self.timeout = timeout
        self._http_client = http_client

    def _post(self, files: dict, data: dict) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(self.url, files=files, data=data, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.url, files=files, data=data)

    def extract_text(self, content: bytes, file_name: str, content_type: str = "application/pdf") -> str:
        logger.info(f"Sending {len(content)} bytes to OCR.space", file_name=file_name, language=self.language)

        files = {"file": (file_name, content, content_type)}
        data = {"apikey": self.api_key, "language": self.language, "OCREngine": str(self.engine)}

        try:
            response = self._post(files, data)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"OCR.space returned HTTP {e.response.status_code}")
            raise OcrServiceError(f"OCR failed: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"OCR.space request failed: {e}")
            raise OcrServiceError(f"OCR failed: {e}") from e
        except ValueError as e:
            raise OcrServiceError("OCR failed: response was not JSON") from e

        return parse_ocr_space_payload(payload)


def parse_ocr_space_payload(payload) -> str:
    """Join ParsedText of every page, or raise OcrServiceError for an error payload."""
    if not isinstance(payload, dict):
        raise OcrServiceError(f"OCR failed: {payload}")

    results = payload.get("ParsedResults") or []
    if payload.get("IsErroredOnProcessing") or not results:
        message = payload.get("ErrorMessage") or "OCR failed"
        if isinstance(message, list):
            message = " ".join(str(m) for m in message)
        logger.warning(f"OCR.space reported an error: {message}")
        raise OcrServiceError(str(message))

    text = "\n".join(r.get("ParsedText") or "" for r in results)
    logger.info("OCR text received", pages=len(results), chars=len(text))
    return text


class AzureReadClient(OcrClientBase):
    """Azure Document Intelligence prebuilt-read model; returns the full page content."""

    def __init__(self, endpoint: str, api_key: str, timeout: float = 120.0, client=None):
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client or DocumentIntelligenceClient(
            endpoint=endpoint,
            credential=AzureKeyCredential(api_key)
        )

    def extract_text(self, content: bytes, file_name: str, content_type: str = "application/pdf") -> str:
        logger.info(
            "Using Azure Document Intelligence for OCR",
            endpoint=self.endpoint[:50] + "..." if len(self.endpoint) > 50 else self.endpoint,
            file_name=file_name,
        )
        try:
            poller = self._client.begin_analyze_document(
                "prebuilt-read",
                body=content,
                content_type="application/octet-stream"
            )
            result = poller.result(timeout=self.timeout)
        except AzureError as e:
            logger.error(f"Azure DI OCR failed: {str(e)}")
            raise OcrServiceError(f"OCR failed: {str(e)}") from e

        return getattr(result, "content", None) or ""


def create_ocr_client(settings) -> OcrClientBase:
    """Build the OCR client selected by OCR_PROVIDER."""
    provider = (settings.ocr_provider or "ocr_space").lower()

    if provider == "azure":
        if not (settings.az_di_endpoint and settings.az_di_api_key):
            raise OcrServiceError("Azure Document Intelligence not configured (set AZ_DI_ENDPOINT and AZ_DI_API_KEY)")
        return AzureReadClient(
            endpoint=settings.az_di_endpoint,
            api_key=settings.az_di_api_key,
            timeout=settings.ocr_timeout_seconds,
        )

    if provider == "ocr_space":
        if not settings.ocr_space_api_key:
            logger.warning("OCR_SPACE_API_KEY not set - OCR.space will reject requests")
        return OcrSpaceClient(
            api_key=settings.ocr_space_api_key or "",
            url=settings.ocr_space_url,
            language=settings.ocr_language,
            engine=settings.ocr_engine,
            timeout=settings.ocr_timeout_seconds,
        )

    raise OcrServiceError(f"Unknown OCR provider: {settings.ocr_provider}")
