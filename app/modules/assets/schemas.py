from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class AssetCategory(str, Enum):
    SCRIPT = "script"
    CONCEPT_ART = "concept_art"
    MOODBOARD = "moodboard"
    STORYBOARD = "storyboard"
    WIREFRAME = "wireframe"
    STYLE_GUIDE = "style_guide"
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    DOCUMENT = "document"
    OTHER = "other"


class AssetResponse(BaseModel):
    id: str
    project_id: str
    uploaded_by_user_id: Optional[str] = None
    file_name: str
    file_path: str
    file_type: Optional[str] = None
    size_bytes: Optional[int] = None
    asset_category: Optional[AssetCategory] = None
    created_at: Optional[datetime] = None
    url: Optional[str] = None
