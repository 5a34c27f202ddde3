"""
Seller authentication.

There is no login endpoint and no token: every protected request carries
``username`` and ``password`` in its body and is checked here. Sending the
password on every call is kept for client compatibility; swapping in
session or token auth only means replacing ``require_seller``.
"""

import json
from typing import Any, Dict

import bcrypt
import structlog
from fastapi import Depends, HTTPException, Request

import database
from errors import AuthError, StorageError
from schemas import Seller

logger = structlog.get_logger()


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def authenticate_seller(username, password) -> dict:
    if not isinstance(username, str) or not isinstance(password, str):
        logger.warning("auth.failed", reason="missing credentials")
        raise AuthError("Invalid credentials")
    seller = database.find_document("seller", {"username": username})
    if not seller or not verify_password(password, seller.get("password", "")):
        logger.warning("auth.failed", username=username)
        raise AuthError("Invalid credentials")
    return seller


def bootstrap_seller(username: str, password: str, rounds: int = 10) -> dict:
    """Create the seller account, or reset its password if it already exists."""
    seller = Seller(username=username, password=hash_password(password, rounds))
    doc = database.upsert_document("seller", {"username": username}, seller)
    logger.info("seller.bootstrapped", username=username)
    return doc


async def read_body(request: Request) -> Dict[str, Any]:
    """Parse a JSON, urlencoded or multipart body into a dict.

    Multipart bodies keep their ``FormData`` under ``"_form"`` so the upload
    step can reach the files.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        body = {key: value for key, value in form.items() if isinstance(value, str)}
        body["_form"] = form
        return body
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed JSON body")
    return data if isinstance(data, dict) else {}


def require_seller(body: Dict[str, Any] = Depends(read_body)) -> dict:
    try:
        return authenticate_seller(body.get("username"), body.get("password"))
    except StorageError as e:
        logger.error("auth.lookup_failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
