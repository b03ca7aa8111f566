from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator

BASE_DIR = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Add parent directory to path for catalog module import
sys.path.insert(0, str(BASE_DIR))
from catalog import (
    CatalogError,
    CatalogSettings,
    DirectorySource,
    InvalidFilterError,
    NotFoundError,
    ParseError,
    ValidationError,
    __version__,
)
from catalog.service import CatalogService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("PORT", "8800"))


class IngestPayload(BaseModel):
    source_ref: str = Field(
        ..., min_length=1, max_length=1000, description="Where the document came from; the id derives from it."
    )
    text: str = Field(..., description="Full document text: front matter and markdown body.")
    id: Optional[str] = Field(None, description="Explicit slug overriding the derived id.")

    @field_validator("source_ref")
    @classmethod
    def clean_source_ref(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("source_ref cannot be empty.")
        return cleaned


def _status_for(exc: CatalogError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidFilterError):
        return 400
    if isinstance(exc, (ParseError, ValidationError)):
        return 422
    return 400


def _http_error(exc: CatalogError) -> HTTPException:
    return HTTPException(status_code=_status_for(exc), detail=exc.to_dict())


def load_catalog(settings: CatalogSettings) -> CatalogService:
    """Create a catalog service and load the configured source directory."""
    service = CatalogService(settings)
    if settings.source_dir is None:
        logger.warning("CATALOG_SOURCE_DIR not set; starting with an empty catalog")
        return service

    if not settings.source_dir.is_dir():
        logger.warning(f"Catalog source directory not found: {settings.source_dir}")
        return service

    report = service.ingest_source(DirectorySource(settings.source_dir, settings.source_pattern))
    logger.info(
        f"✓ Loaded {len(report.ingested)} document(s) from {settings.source_dir} "
        f"({len(report.failures)} rejected)"
    )
    for source_ref, error in report.failures.items():
        logger.warning(f"⚠ {source_ref}: {error}")
    return service


def create_app(service: Optional[CatalogService] = None) -> FastAPI:
    """Build the HTTP app around a catalog service.

    Args:
        service: Catalog to serve (default: loaded from environment settings)
    """
    if service is None:
        service = load_catalog(CatalogSettings.from_env())

    app = FastAPI(title="Agents Catalog", version=__version__)
    app.state.catalog = service

    # For production, set CORS_ORIGINS="https://yourdomain.com,https://app.yourdomain.com"
    cors_origins_str = os.environ.get("CORS_ORIGINS", "*")
    if cors_origins_str == "*":
        allowed_origins = ["*"]
    else:
        allowed_origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
        logger.info(f"CORS allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "documents": len(service)}

    @app.post("/documents", status_code=201)
    def ingest_document(payload: IngestPayload) -> Dict[str, Any]:
        """Ingest or replace one document."""
        try:
            doc_id = service.ingest(payload.source_ref, payload.text, doc_id=payload.id)
        except CatalogError as exc:
            raise _http_error(exc) from exc
        return {"id": doc_id}

    @app.get("/documents/{doc_id:path}")
    def get_document(doc_id: str) -> Dict[str, Any]:
        try:
            document = service.get(doc_id)
        except CatalogError as exc:
            raise _http_error(exc) from exc
        return document.to_dict()

    @app.delete("/documents/{doc_id:path}")
    def remove_document(doc_id: str) -> Dict[str, Any]:
        try:
            document = service.remove(doc_id)
        except CatalogError as exc:
            raise _http_error(exc) from exc
        return document.to_dict(include_body=False)

    @app.post("/search")
    def search(filters: Optional[Dict[str, Any]] = Body(default=None)) -> Dict[str, Any]:
        """Search with a filter object, e.g. {"tags": ["react"], "sort": "name"}."""
        try:
            result = service.search(filters or {})
        except CatalogError as exc:
            raise _http_error(exc) from exc
        return result.to_dict()

    @app.get("/stats")
    def stats() -> Dict[str, Any]:
        return service.stats()

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = DEFAULT_PORT, reload: bool = False) -> None:
    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - runtime guard
        raise SystemExit(
            "Missing dependency 'uvicorn'. Install it with 'pip install uvicorn[standard]' and retry."
        ) from exc

    uvicorn.run(
        "app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    run_server(port=DEFAULT_PORT, reload=False)
