"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the Software Store catalog.
Controllers are intentionally thin: they validate the form, delegate to
services and turn a `SubmissionResult` into a redirect that carries the
flash message in its query string.

Endpoints implemented:
- GET /submit
- POST /submit
- GET /details
- GET /remove
- GET /categories
- GET /programs
- GET /health
"""

from fastapi import FastAPI, Depends, UploadFile, File, Form, Request
from fastapi.responses import JSONResponse, HTMLResponse, RedirectResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from typing import Optional
from urllib.parse import urlencode
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services
from .config import settings
from .errors import NotFound, PersistenceFailure, ValidationFailure
from .messages import get_message
from .schemas import CategoryOut, ProgramForm
from .utils.file_transfer import LocalFileTransfer
from .validators import ensure_valid_program_form

FILE_SIZE_DIVIDER = 1024

app = FastAPI(title="Software Store API")
logger = logging.getLogger("softwarestore.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    if request.url.path in ("/submit", "/remove"):
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
    return response


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    logger.error("Catalog write failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "the catalog could not be updated"})


def get_file_transfer():
    """Durable storage used for accepted programs (overridable in tests)."""
    return LocalFileTransfer(settings.STORAGE_DIR)


def _upload_size(file: UploadFile) -> int:
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size


def _parse_category_id(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw is not None and raw.strip() else None
    except ValueError:
        return None


def _form_context(store: services.CatalogStore) -> dict:
    return {
        'categories': [CategoryOut(id=c.id, name=c.name).model_dump() for c in store.get_all_categories()],
        'max_file_size_kb': settings.MAX_UPLOAD_BYTES // FILE_SIZE_DIVIDER,
    }


@app.get('/submit')
def get_submit_form(status: Optional[str] = None, message: Optional[str] = None, db: Session = Depends(get_session)):
    """Return the submission form context.

    The redirect after a POST carries `status` and `message` (a message
    key); they come back here as the flash message to display.
    """
    out = _form_context(services.CatalogStore(db))
    out['flash'] = None
    if status in ('success', 'error') and message:
        out['flash'] = {'status': status, 'message_key': message, 'message': get_message(message)}
    return out


@app.post('/submit')
def submit_program(
    name: str = Form(default=''),
    description: str = Form(default=''),
    category_id: Optional[str] = Form(default=None, alias='categoryId'),
    file: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_session),
    transfer=Depends(get_file_transfer),
):
    """Accept a program archive with its form fields.

    Invalid form fields return 400 with per-field errors so the form can
    show them inline. Otherwise the submission pipeline runs and the
    client is redirected back to the form with a flash message.
    """
    store = services.CatalogStore(db)
    form = ProgramForm(name=name, description=description, category_id=_parse_category_id(category_id))
    filename = file.filename if file is not None else None
    size = _upload_size(file) if file is not None and filename else 0
    try:
        ensure_valid_program_form(form, filename, size, settings.MAX_UPLOAD_BYTES, store.category_exists)
    except ValidationFailure as exc:
        return JSONResponse(
            status_code=400,
            content={
                'errors': exc.errors,
                'messages': {field: get_message(key) for field, key in exc.errors.items()},
                **_form_context(store),
            },
        )
    logger.debug("Adding new program: %s", form)
    svc = services.SubmissionService(db, store=store, transfer=transfer)
    result = svc.submit(form, file)
    query = urlencode({'status': 'success' if result.ok else 'error', 'message': result.message_key})
    return RedirectResponse(url=f"/submit?{query}", status_code=303)


@app.get('/details', response_class=HTMLResponse)
def get_program_details_page():
    """Static program details view."""
    return """
    <!DOCTYPE html>
    <html>
    <head><meta charset="UTF-8" /><title>Program details</title></head>
    <body>
      <h1>Program details</h1>
      <p>Pick a program in the <a href="/">catalog</a> to see its details.</p>
    </body>
    </html>
    """


@app.get('/remove')
def remove_program(id: int, db: Session = Depends(get_session)):
    """Delete a program (a no-op for unknown ids) and go back to the catalog."""
    services.CatalogStore(db).remove_program(id)
    return RedirectResponse(url='/', status_code=303)


@app.get('/categories')
def list_categories(db: Session = Depends(get_session)):
    return [CategoryOut(id=c.id, name=c.name) for c in services.CatalogStore(db).get_all_categories()]


@app.get('/programs')
def list_programs(categoryId: Optional[int] = None, db: Session = Depends(get_session)):
    """List programs with their category name and download count."""
    store = services.CatalogStore(db)
    if categoryId is not None:
        store.get_category_by_id(categoryId)
    return store.get_programs_basic_info(categoryId)


@app.get("/", response_class=HTMLResponse)
def home():
    """Minimal homepage for quick manual testing."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
      <meta charset="UTF-8" />
      <title>Software Store</title>
      <style>
        body { font-family: Arial, sans-serif; margin: 32px; }
        a { color: #0a6; }
        .card { max-width: 640px; padding: 16px; border: 1px solid #ddd; border-radius: 8px; }
      </style>
    </head>
    <body>
      <div class="card">
        <h1>Software Store</h1>
        <p>Quick links for local testing:</p>
        <ul>
          <li><a href="/docs">Swagger UI</a></li>
          <li><a href="/categories">Categories</a></li>
          <li><a href="/programs">Programs</a></li>
          <li><a href="/submit">Submission form context</a></li>
        </ul>
        <p>POST a zip archive with <code>name</code>, <code>description</code> and <code>categoryId</code> to <code>/submit</code>.</p>
      </div>
    </body>
    </html>
    """


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
