from supabase import Client
from app.config.settings import settings
from app.modules.auth.schemas import Caller
from app.modules.assets.schemas import AssetCategory, AssetResponse
from app.modules.assets.storage import AssetStorage
from app.core.authorization import AuthorizationService
from app.core.errors import DependencyFailure, NotFound, ValidationError
from typing import List, Optional
import logging
import os
import uuid

logger = logging.getLogger(__name__)


def build_asset_path(project_id: str, category: AssetCategory, file_name: str) -> str:
    extension = os.path.splitext(file_name or "")[1].lower()
    return f"{project_id}/{category.value}/{uuid.uuid4()}{extension}"


class AssetService:
    def __init__(self, supabase: Client, authz: Optional[AuthorizationService] = None,
                 storage: Optional[AssetStorage] = None):
        self.supabase = supabase
        self.authz = authz or AuthorizationService(supabase)
        self.storage = storage or AssetStorage(supabase)

    def upload_asset(self, project_id: str, category: AssetCategory, file_name: str, content: bytes,
                     content_type: Optional[str], caller: Caller) -> AssetResponse:
        """
        Store the file, then record it in project_assets.

        If the record cannot be written the stored object is removed again so
        no orphaned blob is left behind.
        """
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > settings.max_asset_bytes:
            raise ValidationError(f"File exceeds the maximum size of {settings.max_asset_bytes} bytes")
        self.authz.require_project_member(caller.id, project_id)

        path = build_asset_path(project_id, category, file_name)
        content_type = content_type or "application/octet-stream"
        self.storage.upload(path, content, content_type)

        try:
            result = self.supabase.table("project_assets").insert({
                "project_id": project_id,
                "uploaded_by_user_id": caller.id,
                "file_name": file_name,
                "file_path": path,
                "file_type": content_type,
                "size_bytes": len(content),
                "asset_category": category.value,
            }).execute()
            if not result.data:
                raise DependencyFailure("Failed to record asset")
        except Exception as e:
            logger.error(f"Error recording asset {path}: {e}")
            self.storage.delete(path)
            raise DependencyFailure("Failed to record asset")

        logger.info(f"Asset {path} uploaded to project {project_id} by {caller.id}")
        return AssetResponse(**result.data[0], url=self.storage.signed_url(path))

    def list_assets(self, project_id: str, caller: Caller,
                    category: Optional[AssetCategory] = None) -> List[AssetResponse]:
        """Assets of a project, oldest first, each with a signed URL (None when signing fails)"""
        self.authz.require_project_member(caller.id, project_id)
        try:
            query = self.supabase.table("project_assets")\
                .select("*")\
                .eq("project_id", project_id)
            if category is not None:
                query = query.eq("asset_category", category.value)
            result = query.order("created_at").execute()
        except Exception as e:
            logger.error(f"Error loading assets for project {project_id}: {e}")
            raise DependencyFailure("Failed to load assets")
        return [
            AssetResponse(**row, url=self.storage.signed_url(row["file_path"]) if row.get("file_path") else None)
            for row in (result.data or [])
        ]

    def delete_asset(self, project_id: str, asset_id: str, caller: Caller) -> bool:
        """Delete the record, then the stored object. A failed object delete is only logged."""
        self.authz.require_project_member(caller.id, project_id)
        try:
            result = self.supabase.table("project_assets")\
                .delete()\
                .eq("id", asset_id)\
                .eq("project_id", project_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting asset {asset_id}: {e}")
            raise DependencyFailure("Failed to delete asset")
        if not result.data:
            raise NotFound("Asset not found")
        path = result.data[0].get("file_path")
        if path and not self.storage.delete(path):
            logger.warning(f"Asset {asset_id} deleted but object {path} was left in storage")
        return True
