import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, File, Header, HTTPException, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from blob import BlobClient, BlobError
from config import Settings, load_settings
from media import MAX_FILE_SIZE, InvalidMedia, MediaError, MediaLibrary, MediaNotFound, build_media_library, check_upload
from schemas import NavItem, Project, SiteContent
from slugs import slugify
from storage import NavigationStore, ProjectStore, SiteContentStore, StoreError, build_stores
from validation import validate_project

logger = logging.getLogger(__name__)

# =====================
# Auth / Security Setup
# =====================
ADMIN_HEADER = "X-Admin-Token"


def require_admin(request: Request, x_admin_token: Optional[str] = Header(None)):
    expected = request.app.state.settings.admin_token
    if not expected or x_admin_token is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not secrets.compare_digest(x_admin_token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return True


# ============
# Dependencies
# ============
def project_store(request: Request) -> ProjectStore:
    return request.app.state.stores.projects


def navigation_store(request: Request) -> NavigationStore:
    return request.app.state.stores.navigation


def content_store(request: Request) -> SiteContentStore:
    return request.app.state.stores.content


def media_library(request: Request) -> MediaLibrary:
    return request.app.state.media


# =========
# Utilities
# =========
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def clean_tags(tags: List[str]) -> List[str]:
    return [t.strip().lower() for t in tags if t.strip()]


def normalize_project_body(body: Dict[str, Any]) -> Dict[str, Any]:
    """Accept tags as a comma separated string as well as a list."""
    data = dict(body)
    if isinstance(data.get("tags"), str):
        data["tags"] = clean_tags(data["tags"].split(","))
    return data


def validation_failed(fields: Dict[str, str]) -> HTTPException:
    return HTTPException(status_code=400, detail={"error": "Validation failed", "fields": fields})


def server_error(what: str, message: str) -> HTTPException:
    logger.exception("%s failed", what)
    return HTTPException(status_code=500, detail=message)


router = APIRouter()


# ======
# Routes
# ======
@router.get("/")
def root():
    return {"status": "ok", "service": "showcase-api"}


@router.get("/health")
def health(request: Request):
    settings: Settings = request.app.state.settings
    return {
        "backend": "running",
        "storage": settings.storage_mode,
        "blob_configured": bool(settings.blob_token),
        "admin_configured": bool(settings.admin_token),
        "media": request.app.state.media.name,
    }


# Auth
@router.post("/auth/verify")
def verify_token(_: bool = Depends(require_admin)):
    return {"ok": True}


# Projects
@router.get("/projects")
def list_projects(store: ProjectStore = Depends(project_store)):
    try:
        return {"projects": store.read()}
    except StoreError:
        raise server_error("GET /projects", "Failed to load projects")


@router.post("/projects", status_code=201)
def create_project(
    body: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    store: ProjectStore = Depends(project_store),
):
    data = normalize_project_body(body)
    errors = validate_project(data)
    if errors:
        raise validation_failed(errors)

    try:
        projects = store.read()
        now = utc_now_iso()
        project = Project(
            slug=slugify(data["title"], [p.slug for p in projects]),
            title=data["title"].strip(),
            description=data["description"].strip(),
            imageUrl=data["imageUrl"].strip(),
            linkUrl=data["linkUrl"].strip(),
            tags=clean_tags(data.get("tags") or []),
            status=data["status"],
            createdAt=now,
            updatedAt=now,
        )
        store.write(projects + [project])
    except StoreError:
        raise server_error("POST /projects", "Failed to save data")
    return {"project": project}


@router.get("/projects/{slug}")
def get_project(slug: str, store: ProjectStore = Depends(project_store)):
    try:
        project = store.find(slug)
    except StoreError:
        raise server_error(f"GET /projects/{slug}", "Failed to load project")
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return {"project": project}


@router.put("/projects/{slug}")
def update_project(
    slug: str,
    body: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    store: ProjectStore = Depends(project_store),
):
    data = normalize_project_body(body)
    errors = validate_project(data, is_partial=True)
    if errors:
        raise validation_failed(errors)

    changes: Dict[str, Any] = {
        key: data[key].strip()
        for key in ("title", "description", "imageUrl", "linkUrl")
        if key in data
    }
    if "tags" in data:
        changes["tags"] = clean_tags(data["tags"])
    if "status" in data:
        changes["status"] = data["status"]

    try:
        projects = store.read()
        index = next((i for i, p in enumerate(projects) if p.slug == slug), None)
        if index is None:
            raise HTTPException(status_code=404, detail="Project not found")
        updated = projects[index].model_copy(update={**changes, "updatedAt": utc_now_iso()})
        projects[index] = updated
        store.write(projects)
    except StoreError:
        raise server_error(f"PUT /projects/{slug}", "Failed to save data")
    return {"project": updated}


@router.delete("/projects/{slug}", status_code=204)
def delete_project(
    slug: str,
    _: bool = Depends(require_admin),
    store: ProjectStore = Depends(project_store),
):
    try:
        projects = store.read()
        remaining = [p for p in projects if p.slug != slug]
        if len(remaining) == len(projects):
            raise HTTPException(status_code=404, detail="Project not found")
        store.write(remaining)
    except StoreError:
        raise server_error(f"DELETE /projects/{slug}", "Failed to save data")
    return Response(status_code=204)


# Navigation
@router.get("/navigation")
def list_navigation(store: NavigationStore = Depends(navigation_store)):
    try:
        return {"items": store.read()}
    except StoreError:
        raise server_error("GET /navigation", "Failed to load navigation")


@router.put("/navigation")
def replace_navigation(
    body: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    store: NavigationStore = Depends(navigation_store),
):
    items = body.get("items")
    if not isinstance(items, list):
        raise HTTPException(status_code=400, detail="items must be an array")

    normalized: List[NavItem] = []
    for position, item in enumerate(items):
        item = item if isinstance(item, dict) else {}
        label, href = item.get("label"), item.get("href")
        if (
            not item.get("id")
            or not isinstance(label, str) or not label.strip()
            or not isinstance(href, str) or not href.strip()
        ):
            raise HTTPException(status_code=400, detail="Each item needs an id, label, and href")
        # position wins over any client supplied order
        normalized.append(NavItem(id=str(item["id"]), label=label.strip(), href=href.strip(), order=position))

    try:
        store.write(normalized)
    except StoreError:
        raise server_error("PUT /navigation", "Failed to save navigation")
    return {"items": normalized}


# Site content
@router.get("/content")
def get_content(store: SiteContentStore = Depends(content_store)):
    try:
        return {"content": store.read()}
    except StoreError:
        raise server_error("GET /content", "Failed to load content")


@router.put("/content")
def replace_content(
    body: Dict[str, Any] = Body(...),
    _: bool = Depends(require_admin),
    store: SiteContentStore = Depends(content_store),
):
    raw = body.get("content")
    if not isinstance(raw, dict):
        raise HTTPException(status_code=400, detail="content object is required")
    try:
        content = SiteContent.model_validate(raw)
    except ValidationError as e:
        fields = {".".join(str(part) for part in err["loc"]): err["msg"] for err in e.errors()}
        raise HTTPException(status_code=400, detail={"error": "Invalid content", "fields": fields})

    try:
        store.write(content)
    except StoreError:
        raise server_error("PUT /content", "Failed to save content")
    return {"content": content}


# Media
@router.get("/media")
def list_media(media: MediaLibrary = Depends(media_library)):
    try:
        return {"images": media.list()}
    except (MediaError, BlobError, OSError):
        raise server_error("GET /media", "Failed to list media")


@router.post("/media", status_code=201)
def upload_media(
    file: Optional[UploadFile] = File(None),
    _: bool = Depends(require_admin),
    media: MediaLibrary = Depends(media_library),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    data = file.file.read(MAX_FILE_SIZE + 1)
    try:
        check_upload(file.content_type, len(data))
        image = media.upload(file.filename or "", file.content_type, data)
    except InvalidMedia as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (MediaError, BlobError, OSError):
        raise server_error("POST /media", "Failed to upload file")
    return {"image": image}


@router.delete("/media/{filename:path}", status_code=204)
def delete_media(
    filename: str,
    _: bool = Depends(require_admin),
    media: MediaLibrary = Depends(media_library),
):
    try:
        media.delete(filename)
    except InvalidMedia as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MediaNotFound:
        raise HTTPException(status_code=404, detail="File not found")
    except (MediaError, BlobError, OSError):
        raise server_error(f"DELETE /media/{filename}", "Failed to delete file")
    return Response(status_code=204)


# ==================
# FastAPI app config
# ==================
async def http_error(request: Request, exc: StarletteHTTPException):
    payload = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def invalid_body(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


def create_app(settings: Optional[Settings] = None, blob_client: Optional[BlobClient] = None) -> FastAPI:
    settings = settings or load_settings()
    if blob_client is None and settings.blob_token:
        blob_client = BlobClient(settings.blob_token, settings.blob_api_url, timeout=settings.blob_timeout)

    app = FastAPI(title="Showcase API")
    app.state.settings = settings
    app.state.stores = build_stores(settings, blob_client)
    app.state.media = build_media_library(settings.uploads_dir, blob_client)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_error)
    app.add_exception_handler(RequestValidationError, invalid_body)
    app.include_router(router)

    if blob_client is None and settings.uploads_dir is not None:
        app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")

    logger.info("Showcase API using %s storage", settings.storage_mode)
    return app


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


app = create_app()


if __name__ == "__main__":
    import uvicorn
    configure_logging(app.state.settings.log_level)
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
