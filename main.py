import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from bson import ObjectId
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.datastructures import FormData
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from auth import bootstrap_seller, read_body, require_seller
from config import Settings, configure_logging, get_settings
from database import create_document, delete_document, get_documents
from errors import AuthError, StorageError, UploadRejected
from schemas import Order, OrderIn, Product
from uploads import URL_PREFIX, pick_media, remove_media, save_media

logger = structlog.get_logger()

PRODUCT_FIELDS = ("name", "price", "description", "category", "mediaType")


# Utility helpers
def to_dict(doc):
    if not doc:
        return doc
    out = {}
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            out[k] = str(v)
        elif isinstance(v, datetime):
            # Mongo hands back naive UTC datetimes.
            if v.tzinfo is None:
                v = v.replace(tzinfo=timezone.utc)
            out[k] = v.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        else:
            out[k] = v
    return out


def validation_message(prefix: str, errors) -> str:
    parts = []
    for err in errors:
        loc = [str(p) for p in err["loc"] if p != "body"]
        parts.append(f"{'.'.join(loc) or 'body'}: {err['msg']}")
    return f"{prefix} validation failed: " + ", ".join(parts)


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


router = APIRouter()


@router.get("/api/products")
def list_products():
    try:
        return [to_dict(p) for p in get_documents("product")]
    except StorageError as e:
        logger.error("products.list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Server error")


@router.post("/api/products")
def create_product(
    body: Dict[str, Any] = Depends(read_body),
    seller: dict = Depends(require_seller),
    settings: Settings = Depends(app_settings),
):
    media = ""
    form = body.get("_form")
    if isinstance(form, FormData):
        try:
            upload = pick_media(form)
            if upload is not None:
                media = save_media(upload, settings.upload_dir)
        except UploadRejected as e:
            raise HTTPException(status_code=400, detail=str(e))

    fields = {k: body[k] for k in PRODUCT_FIELDS if body.get(k) is not None}
    fields["media"] = media
    try:
        doc = create_document("product", Product.model_validate(fields))
    except ValidationError as e:
        remove_media(media, settings.upload_dir)
        raise HTTPException(status_code=400, detail=validation_message("Product", e.errors()))
    except StorageError as e:
        remove_media(media, settings.upload_dir)
        logger.error("product.create_failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("product.created", product_id=str(doc["_id"]), seller=seller["username"])
    return {"success": True, "product": to_dict(doc)}


@router.delete("/api/products/{product_id}")
def delete_product(product_id: str, seller: dict = Depends(require_seller)):
    # Reports success whether or not a document matched.
    try:
        deleted = delete_document("product", product_id)
    except StorageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("product.deleted", product_id=product_id, matched=deleted, seller=seller["username"])
    return {"success": True}


@router.post("/api/orders")
def create_order(order: OrderIn):
    # productId is not checked against the product collection.
    try:
        doc = create_document("order", Order.model_validate(order.model_dump()))
    except StorageError as e:
        logger.error("order.create_failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("order.created", order_id=str(doc["_id"]), product_id=str(doc["productId"]))
    return {"success": True, "order": to_dict(doc)}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # The seller must exist before the first request is served.
        database.connect(settings.mongo_url, settings.database_name)
        os.makedirs(settings.upload_dir, exist_ok=True)
        try:
            database.ensure_indexes()
            bootstrap_seller(settings.admin_username, settings.admin_password, settings.bcrypt_rounds)
        except StorageError as e:
            logger.error("startup.failed", error=str(e))
            database.close()
            raise
        yield
        database.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": validation_message("Request", exc.errors())}, status_code=400)

    @app.exception_handler(AuthError)
    async def auth_error(request: Request, exc: AuthError):
        return JSONResponse({"error": str(exc)}, status_code=401)

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        logger.error("storage.failed", path=request.url.path, error=str(exc))
        return JSONResponse({"error": "Server error"}, status_code=500)

    app.include_router(router)
    app.mount(URL_PREFIX, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = get_settings().port
    logger.info("server.starting", port=port)
    uvicorn.run(app, host="0.0.0.0", port=port)
