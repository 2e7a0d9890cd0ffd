from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import Caller
from app.modules.assets.schemas import AssetCategory, AssetResponse
from app.modules.assets.service import AssetService
from app.core.dependencies import get_current_caller
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/projects/{project_id}/assets", tags=["assets"])


def get_asset_service(supabase: Client = Depends(get_supabase)) -> AssetService:
    return AssetService(supabase)


@router.post("", response_model=AssetResponse, status_code=201)
async def upload_asset(
    project_id: str,
    file: UploadFile = File(...),
    category: AssetCategory = Form(...),
    caller: Caller = Depends(get_current_caller),
    service: AssetService = Depends(get_asset_service)
):
    """Upload a file to the project (members only)"""
    content = await file.read()
    return service.upload_asset(
        project_id, category, file.filename or "upload", content, file.content_type, caller
    )


@router.get("", response_model=List[AssetResponse])
async def list_assets(
    project_id: str,
    category: Optional[AssetCategory] = Query(None),
    caller: Caller = Depends(get_current_caller),
    service: AssetService = Depends(get_asset_service)
):
    return service.list_assets(project_id, caller, category)


@router.delete("/{asset_id}", status_code=204)
async def delete_asset(
    project_id: str,
    asset_id: str,
    caller: Caller = Depends(get_current_caller),
    service: AssetService = Depends(get_asset_service)
):
    service.delete_asset(project_id, asset_id, caller)
    return None
