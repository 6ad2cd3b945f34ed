"""
mhtml2html/api/app.py
---------------------
FastAPI service endpoint for the MHTML converter.
Accepts an uploaded .mhtml file and returns the self-contained HTML page.
"""

import codecs

from fastapi import FastAPI, UploadFile, File
from fastapi.responses import HTMLResponse, JSONResponse


# Logging
from mhtml2html.utils.logging_utils import configure_logging, get_logger

# Pipeline
from mhtml2html.mime.errors import StructuralError
from mhtml2html.pipeline.convert import convert_mhtml
from mhtml2html.utils.config import CONFIG, ConvertOptions


# -------------------------------------------------------------------
# Initialize logging BEFORE creating the FastAPI app
# -------------------------------------------------------------------
configure_logging()
logger = get_logger()


# -------------------------------------------------------------------
# Create FastAPI Application
# -------------------------------------------------------------------
app = FastAPI(
    title="MHTML to HTML Converter",
    description="Rebuilds an MHTML web archive as one HTML page with inlined resources.",
    version="1.0.0",
)

# -------------------------------------------------------------------
# ROUTES
# -------------------------------------------------------------------

@app.post("/convert")
async def convert_archive(
    file: UploadFile = File(...),
    convert_iframes: bool = False,
    html_only: bool = False,
    enc: str = CONFIG.DEFAULT_ENCODING,
):
    """
    Upload a .mhtml file and return the converted HTML document.
    """
    try:
        codecs.lookup(enc)
    except LookupError as e:
        return JSONResponse(
            content={"error": "unknown_encoding", "detail": str(e)},
            status_code=400,
        )

    try:
        raw_bytes = await file.read()
        logger.info(
            f"Received file: name={file.filename}, size={len(raw_bytes)} bytes"
        )

        options = ConvertOptions(html_only=html_only, convert_iframes=convert_iframes, enc=enc)
        result = convert_mhtml(raw_bytes, options)

        logger.info(
            "Converted archive | index={index} media={media} frames={frames} html_only={html_only}",
            index=result.get("index"),
            media=result.get("media_count"),
            frames=result.get("frame_count"),
            html_only=result.get("html_only"),
        )

        return HTMLResponse(content=result["html"], status_code=200)

    except StructuralError as e:
        logger.warning(f"Rejected malformed archive {file.filename}: {e}")
        return JSONResponse(
            content={"error": "structural_error", "detail": str(e)},
            status_code=422,
        )

    except Exception as e:
        logger.error(f"Error while converting archive: {type(e).__name__}: {e}")
        return JSONResponse(
            content={
                "error": f"internal_error:{type(e).__name__}",
                "detail": str(e)
            },
            status_code=500,
        )


@app.get("/")
def home():
    logger.info("Health check called on /")
    return {
        "status": "running",
        "message": "MHTML to HTML converter",
        "endpoints": {
            "POST /convert": "Upload .mhtml file, get a self-contained HTML page",
        },
    }
