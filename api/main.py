# ============================================================================
# api/main.py
# ============================================================================
"""
FastAPI Backend for HMR Referral Ingestion

Provides REST API for referral extraction, template field discovery and
filled report generation.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from hmr_ingestion.config import logging_settings
from hmr_ingestion.extractors import ReferralExtractor
from hmr_ingestion.templates import TemplateFiller, discover_fields
from hmr_ingestion.utils import (
    HMRIngestionError,
    UnsupportedDocumentError,
    UnsupportedTemplateError,
    setup_logging,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging before the first request."""
    setup_logging(
        level=logging_settings.LOG_LEVEL,
        log_file=logging_settings.LOG_FILE,
        format_json=logging_settings.LOG_JSON,
    )
    logger.info("HMR ingestion API started")
    yield


app = FastAPI(
    title="HMR Referral Ingestion API",
    description="Referral extraction and report template filling for Home Medicines Reviews",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for the review frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Stateless services, shared across requests
referral_extractor = ReferralExtractor()
template_filler = TemplateFiller()


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def run_blocking(func, *args, **kwargs):
    """Run CPU/IO-bound work (OCR, PDF writing) off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/api/health")
async def health():
    """Health check for monitoring."""
    return {"status": "healthy"}


@app.post("/api/process-pdf")
async def process_pdf(pdf: Optional[UploadFile] = File(None)):
    """
    Extract patient data from an uploaded referral PDF.

    The result is always a best-effort draft for review; `degraded` is true
    when sample text stood in for an unreadable document.
    """
    if pdf is None:
        return error_response(400, "No PDF file provided")
    if (pdf.content_type or "").split(";")[0].strip().lower() != "application/pdf":
        return error_response(400, "File must be a PDF")

    try:
        document = await pdf.read()
        result = await run_blocking(referral_extractor.extract, document, pdf.content_type)
    except UnsupportedDocumentError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception("PDF processing error")
        return error_response(500, "Failed to extract data from PDF", str(e))

    message = "PDF processed successfully"
    if result.degraded:
        message = "Document could not be read; showing sample referral data for review"

    return {
        "success": True,
        "data": result.data.to_dict(),
        "rawText": result.raw_text,
        "degraded": result.degraded,
        "method": result.method,
        "message": message,
    }


@app.post("/api/extract-template-fields")
async def extract_template_fields(file: Optional[UploadFile] = File(None)):
    """List fillable fields of an uploaded PDF or DOCX template."""
    if file is None:
        return error_response(400, "No file provided")

    try:
        template = await file.read()
        fields = await run_blocking(discover_fields, template, file.content_type or "")
    except UnsupportedTemplateError:
        return error_response(400, "Unsupported file type")
    except Exception as e:
        logger.exception("Error extracting template fields")
        return error_response(500, "Failed to extract template fields", str(e))

    return {"fields": fields}


@app.post("/api/generate-custom-template")
async def generate_custom_template(
    template: Optional[UploadFile] = File(None),
    reportData: Optional[str] = Form(None),
    mapping: Optional[str] = Form(None),
    templateType: Optional[str] = Form(None),
):
    """
    Fill an uploaded template with report data.

    Form fields:
        template: PDF or DOCX template file
        reportData: ReportData JSON
        mapping: JSON object, template field -> report key
        templateType: "pdf" or "docx"
    """
    if template is None or not reportData or not mapping:
        return error_response(400, "Missing required fields")

    try:
        report = json.loads(reportData)
        field_mapping = json.loads(mapping)
    except json.JSONDecodeError as e:
        return error_response(400, "Invalid JSON in reportData or mapping", str(e))

    if not isinstance(field_mapping, dict):
        return error_response(400, "mapping must be a JSON object")

    try:
        content = await template.read()
        filled = await run_blocking(
            template_filler.fill,
            content,
            templateType or "",
            report,
            {str(k): str(v) for k, v in field_mapping.items()},
        )
    except UnsupportedTemplateError:
        return error_response(400, "Unsupported template type")
    except ValidationError as e:
        return error_response(400, "Invalid reportData", str(e))
    except HMRIngestionError as e:
        logger.error(f"Template generation failed: {e}")
        return error_response(500, "Failed to generate custom template", str(e))
    except Exception as e:
        logger.exception("Error generating custom template")
        return error_response(500, "Failed to generate custom template", str(e))

    return Response(
        content=filled.content,
        media_type=filled.content_type,
        headers={"Content-Disposition": f'attachment; filename="{filled.filename}"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
