from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import Caller
from app.modules.documents.schemas import (
    DocumentKind, ListKind, DocumentUpdate, DocumentResponse,
    ListItemCreate, ListItemUpdate, ListItemResponse,
    FeedbackCreate, FeedbackResponse
)
from app.modules.documents.service import DocumentService
from app.core.dependencies import get_current_caller
from supabase import Client
from typing import List

router = APIRouter(prefix="/projects/{project_id}", tags=["documents"])


def get_document_service(supabase: Client = Depends(get_supabase)) -> DocumentService:
    return DocumentService(supabase)


@router.get("/documents/{kind}", response_model=DocumentResponse)
async def get_document(
    project_id: str,
    kind: DocumentKind,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    return service.get_document(project_id, kind, caller)


@router.put("/documents/{kind}", response_model=DocumentResponse)
async def update_document(
    project_id: str,
    kind: DocumentKind,
    body: DocumentUpdate,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    """Save one or more text fields of a document"""
    return service.update_document(project_id, kind, body.fields, caller)


@router.post("/documents/{kind}/start", response_model=DocumentResponse)
async def start_document(
    project_id: str,
    kind: DocumentKind,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    """Mark a section as started"""
    return service.start_document(project_id, kind, caller)


@router.get("/lists/{kind}", response_model=List[ListItemResponse])
async def list_items(
    project_id: str,
    kind: ListKind,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    return service.list_items(project_id, kind, caller)


@router.post("/lists/{kind}", response_model=ListItemResponse, status_code=201)
async def add_item(
    project_id: str,
    kind: ListKind,
    body: ListItemCreate,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    return service.add_item(project_id, kind, body.description, caller)


@router.put("/lists/{kind}/{item_id}", response_model=ListItemResponse)
async def update_item(
    project_id: str,
    kind: ListKind,
    item_id: str,
    body: ListItemUpdate,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    return service.update_item(project_id, kind, item_id, body.description, caller)


@router.delete("/lists/{kind}/{item_id}", status_code=204)
async def delete_item(
    project_id: str,
    kind: ListKind,
    item_id: str,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    service.delete_item(project_id, kind, item_id, caller)
    return None


@router.get("/feedback", response_model=List[FeedbackResponse])
async def list_feedback(
    project_id: str,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    """Feedback log, newest first"""
    return service.list_feedback(project_id, caller)


@router.post("/feedback", response_model=FeedbackResponse, status_code=201)
async def add_feedback(
    project_id: str,
    body: FeedbackCreate,
    caller: Caller = Depends(get_current_caller),
    service: DocumentService = Depends(get_document_service)
):
    return service.add_feedback(project_id, body, caller)
