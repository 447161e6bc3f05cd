# routes/ai_chat.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from assistant import process_user_query
from context_manager import build_context_overview
from database import SessionLocal
from schemas.context import ContextOverview

router = APIRouter(prefix="/api/ai-chat", tags=["AI Chat"])
logger = logging.getLogger("routes.ai_chat")


class ChatRequest(BaseModel):
    query: Optional[str] = None


class ChatResponse(BaseModel):
    response: str


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def require_tenant(x_tenant_id: Optional[str] = Header(None)) -> str:
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(status_code=401, detail="Tenant is required")
    return x_tenant_id.strip()


@router.post("", response_model=ChatResponse)
def ai_chat(
    payload: ChatRequest,
    tenant_id: str = Depends(require_tenant),
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    if not payload.query or not payload.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")

    logger.info(f"AI chat query for tenant {tenant_id!r}, user {x_user_id!r}")
    return {"response": process_user_query(db, payload.query, tenant_id, x_user_id or "")}


@router.get("/context", response_model=ContextOverview)
def ai_chat_context(tenant_id: str = Depends(require_tenant), db: Session = Depends(get_db)):
    return build_context_overview(db, tenant_id)
