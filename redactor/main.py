import asyncio
from functools import partial
from typing import Literal

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from .config import MAX_UPLOAD_SIZE
from .document import get_pdf_bytes, page_size, render_page, save_upload, write_pdf_bytes
from .exceptions import InvalidDocumentError
from .geometry import css_to_pdf_rect, pdf_to_css_rect
from .logging import configure_logging, get_logger
from .models import (
    AddRegionsRequest,
    PageInfoResponse,
    PageRegionsResponse,
    RectModel,
    RedactResponse,
    RegionsResponse,
    UploadResponse,
)
from .redaction import redact_document
from .store import RedactionStore

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title="Redactor")

# Pending regions per uploaded document (in-memory)
_stores: dict[str, RedactionStore] = {}


async def _run_sync(fn, *args, **kwargs):
    """Run a blocking function in a thread so it doesn't stall the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fn, *args, **kwargs))


def _regions_response(store: RedactionStore) -> RegionsResponse:
    return RegionsResponse(regions={
        page: [RectModel.from_rect(r) for r in rects]
        for page, rects in store.all_rects().items()
    })


async def _existing_store(doc_id: str) -> RedactionStore:
    try:
        await _run_sync(get_pdf_bytes, doc_id)
    except ValueError:
        raise HTTPException(400, "Invalid document id")
    except FileNotFoundError:
        raise HTTPException(404, "Document not found")
    return _stores.setdefault(doc_id, RedactionStore())


@app.post("/api/upload", response_model=UploadResponse)
async def upload_pdf(file: UploadFile = File(...)):
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(400, "Only PDF files are accepted")
    content = await file.read()
    if len(content) == 0:
        raise HTTPException(400, "Empty file")
    if len(content) > MAX_UPLOAD_SIZE:
        raise HTTPException(400, f"File too large (max {MAX_UPLOAD_SIZE // 1024 // 1024} MB)")
    try:
        doc_id, page_count = await _run_sync(save_upload, content, file.filename)
    except InvalidDocumentError as e:
        raise HTTPException(400, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))
    _stores[doc_id] = RedactionStore()
    logger.info("Uploaded %s (%d pages)", doc_id, page_count)
    return UploadResponse(doc_id=doc_id, page_count=page_count)


@app.get("/api/documents/{doc_id}/pages/{page_num}", response_model=PageInfoResponse)
async def get_page_info(doc_id: str, page_num: int):
    try:
        width, height = await _run_sync(page_size, doc_id, page_num)
    except ValueError:
        raise HTTPException(400, "Invalid document id")
    except FileNotFoundError:
        raise HTTPException(404, "Document not found")
    except IndexError as e:
        raise HTTPException(404, str(e))
    return PageInfoResponse(page_num=page_num, width=width, height=height)


@app.get("/api/documents/{doc_id}/pages/{page_num}/image")
async def get_page_image(doc_id: str, page_num: int):
    try:
        png = await _run_sync(render_page, doc_id, page_num)
    except ValueError:
        raise HTTPException(400, "Invalid document id")
    except FileNotFoundError:
        raise HTTPException(404, "Document not found")
    except IndexError as e:
        raise HTTPException(404, str(e))
    return Response(content=png, media_type="image/png")


@app.get("/api/documents/{doc_id}/regions", response_model=RegionsResponse)
async def list_regions(doc_id: str):
    store = await _existing_store(doc_id)
    return _regions_response(store)


@app.post("/api/documents/{doc_id}/regions", response_model=RegionsResponse)
async def add_regions(doc_id: str, req: AddRegionsRequest):
    store = await _existing_store(doc_id)
    try:
        _width, height = await _run_sync(page_size, doc_id, req.page_num)
    except IndexError as e:
        raise HTTPException(404, str(e))

    if req.units == "css":
        rects = [css_to_pdf_rect(r.x, r.y, r.width, r.height, height, req.scale) for r in req.rects]
    else:
        rects = [r.to_rect() for r in req.rects]
    store.extend(req.page_num, rects)
    return _regions_response(store)


@app.get("/api/documents/{doc_id}/regions/{page_num}", response_model=PageRegionsResponse)
async def list_page_regions(
    doc_id: str,
    page_num: int,
    units: Literal["pdf", "css"] = "pdf",
    scale: float = Query(1.0, gt=0),
):
    store = await _existing_store(doc_id)
    rects = store.rects_for_page(page_num)
    if units == "css" and rects:
        try:
            _width, height = await _run_sync(page_size, doc_id, page_num)
        except IndexError as e:
            raise HTTPException(404, str(e))
        models = [
            RectModel(x=left, y=top, width=w, height=h)
            for left, top, w, h in (pdf_to_css_rect(r, height, scale) for r in rects)
        ]
    else:
        models = [RectModel.from_rect(r) for r in rects]
    return PageRegionsResponse(page_num=page_num, units=units, rects=models)


@app.delete("/api/documents/{doc_id}/regions/{page_num}/{index}", response_model=RegionsResponse)
async def remove_region(doc_id: str, page_num: int, index: int):
    store = await _existing_store(doc_id)
    store.remove(page_num, index)
    return _regions_response(store)


@app.delete("/api/documents/{doc_id}/regions/{page_num}", response_model=RegionsResponse)
async def clear_page_regions(doc_id: str, page_num: int):
    store = await _existing_store(doc_id)
    store.clear_page(page_num)
    return _regions_response(store)


@app.delete("/api/documents/{doc_id}/regions", response_model=RegionsResponse)
async def clear_regions(doc_id: str):
    store = await _existing_store(doc_id)
    store.clear()
    return _regions_response(store)


@app.post("/api/documents/{doc_id}/redact", response_model=RedactResponse)
async def redact(doc_id: str):
    store = await _existing_store(doc_id)
    if not store.has_rects:
        raise HTTPException(400, "No redaction regions selected")

    original = await _run_sync(get_pdf_bytes, doc_id)
    try:
        result = await _run_sync(redact_document, original, store.all_rects())
    except InvalidDocumentError as e:
        raise HTTPException(400, str(e))
    await _run_sync(write_pdf_bytes, doc_id, result.pdf_bytes)
    store.clear()

    if result.skipped_pages:
        logger.warning("Document %s: pages %s left unredacted", doc_id, sorted(result.skipped_pages))
    return RedactResponse(redacted_pages=result.redacted_pages, skipped_pages=result.skipped_pages)


@app.get("/api/documents/{doc_id}/download")
async def download_pdf(doc_id: str):
    try:
        pdf_bytes = await _run_sync(get_pdf_bytes, doc_id)
    except ValueError:
        raise HTTPException(400, "Invalid document id")
    except FileNotFoundError:
        raise HTTPException(404, "Document not found")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={doc_id}.pdf"},
    )
