# docsnap HTTP API – single-URL and batch extraction over one shared browser.
#
# server.py owns:
#   - The FastAPI app and its lifespan (browser shutdown, pending deliveries)
#   - Request models (camelCase, as sent by JS clients)
#   - Mapping of extraction errors to HTTP status codes
#
# Browser work is done by docsnap.WebExtractor.

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from clients.embeddings_client import get_embeddings_client
from config.utils import (
    get_batch_concurrency,
    get_batch_delay_ms,
    get_cors_origins,
    get_port,
    get_settle_time_ms,
    is_headless,
)
from docsnap import (
    BatchItemError,
    ExtractedDocument,
    ExtractionOptions,
    FormatTarget,
    InitializationError,
    NavigationError,
    RenderSession,
    WebExtractor,
    format_document,
)
from docsnap.urls import validate_url

# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------


class OptionsBody(BaseModel):
    selector: str | None = None
    waitForSelector: str | None = None
    maxWaitTime: int = Field(default=10000, gt=0)
    removeSelectors: list[str] = Field(default_factory=list)
    extractImages: bool = False
    extractLinks: bool = False

    def to_options(self) -> ExtractionOptions:
        return ExtractionOptions(
            selector=self.selector,
            wait_for_selector=self.waitForSelector,
            max_wait_time_ms=self.maxWaitTime,
            remove_selectors=self.removeSelectors,
            extract_images=self.extractImages,
            extract_links=self.extractLinks,
        )


class ExtractRequest(OptionsBody):
    url: str
    format: FormatTarget | None = None


class BatchRequest(BaseModel):
    urls: list[str]
    concurrency: int = Field(default_factory=get_batch_concurrency, ge=1)
    delay: int = Field(default_factory=get_batch_delay_ms, ge=0)
    options: OptionsBody = Field(default_factory=OptionsBody)
    format: FormatTarget | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _document_payload(document: ExtractedDocument, fmt: FormatTarget | None) -> dict:
    payload = {"success": True, "url": document.url, "data": document.model_dump(mode="json", exclude_none=True)}
    if fmt:
        payload["formatted"] = format_document(document, fmt)
    return payload


def _error_payload(error: BatchItemError) -> dict:
    return {"success": False, "url": error.url, "error": error.error_message, "code": error.code}


def default_extractor() -> WebExtractor:
    return WebExtractor(
        session=RenderSession(headless=is_headless()),
        sink=get_embeddings_client(),
        settle_time_ms=get_settle_time_ms(),
    )


API_DOCS = {
    "service": "docsnap",
    "endpoints": {
        "GET /health": "Service and browser status",
        "GET /api-docs": "This listing",
        "POST /scraper/extract": {
            "body": {
                "url": "https://example.com (required)",
                "selector": "CSS selector scoping content/html",
                "waitForSelector": "CSS selector to wait for (soft)",
                "maxWaitTime": "Wait timeout in ms (default 10000)",
                "removeSelectors": "CSS selectors removed before extraction",
                "extractImages": "Include images (default false)",
                "extractLinks": "Include links (default false)",
                "format": "markdown | json | html | text",
            },
        },
        "POST /scraper/batch": {
            "body": {
                "urls": "List of URLs (required)",
                "concurrency": "URLs per wave (default 3)",
                "delay": "Delay between waves in ms (default 1000)",
                "options": "Same options as /scraper/extract",
                "format": "markdown | json | html | text",
            },
        },
    },
}


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------


def create_app(extractor: WebExtractor | None = None) -> FastAPI:
    extractor = extractor or default_extractor()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        print("[server] Starting docsnap API...")
        yield
        print("[server] Shutting down...")
        await extractor.shutdown()

    web_app = FastAPI(title="docsnap API", lifespan=lifespan)
    web_app.state.extractor = extractor
    web_app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    @web_app.get("/health")
    async def health():
        return {"status": "healthy", "browser": extractor.session.is_started}

    @web_app.get("/api-docs")
    async def api_docs():
        return API_DOCS

    @web_app.post("/scraper/extract")
    async def extract(req: ExtractRequest):
        error = validate_url(req.url)
        if error:
            raise HTTPException(400, f"{error}: {req.url}")

        try:
            document = await extractor.extract_one(req.url, req.to_options())
        except NavigationError as e:
            raise HTTPException(502, str(e))
        except InitializationError as e:
            raise HTTPException(503, str(e))

        print(f"[extract] OK {req.url} ({len(document.content):,} chars)")
        return {**_document_payload(document, req.format), "timestamp": _now()}

    @web_app.post("/scraper/batch")
    async def batch(req: BatchRequest):
        if not req.urls:
            raise HTTPException(400, "No URLs provided")

        results = await extractor.extract_many(
            req.urls,
            req.options.to_options(),
            concurrency=req.concurrency,
            inter_batch_delay_ms=req.delay,
        )
        payloads = [
            _error_payload(r) if isinstance(r, BatchItemError) else _document_payload(r, req.format)
            for r in results
        ]
        successful = sum(1 for p in payloads if p["success"])
        print(f"[batch] OK total={len(payloads)} successful={successful}")
        return {
            "total": len(payloads),
            "successful": successful,
            "failed": len(payloads) - successful,
            "results": payloads,
            "timestamp": _now(),
        }

    return web_app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_port())


if __name__ == "__main__":
    main()
