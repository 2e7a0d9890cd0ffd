from pydantic import BaseModel
from typing import Dict, Optional
from datetime import datetime
from enum import Enum


class DocumentKind(str, Enum):
    TREATMENT = "treatment"
    BUSINESS = "business"
    DESIGN = "design"
    FUNCTIONAL = "functional"
    TECHNOLOGY = "technology"


class ListKind(str, Enum):
    PLOT_POINTS = "plot-points"
    SCENARIOS = "scenarios"


class DocumentUpdate(BaseModel):
    # Field name -> new content. Empty strings and nulls clear a field.
    fields: Dict[str, Optional[str]]


class DocumentResponse(BaseModel):
    project_id: str
    kind: DocumentKind
    exists: bool
    fields: Dict[str, Optional[str]] = {}
    updated_at: Optional[datetime] = None


class ListItemCreate(BaseModel):
    description: str


class ListItemUpdate(BaseModel):
    description: str


class ListItemResponse(BaseModel):
    id: str
    project_id: str
    description: str
    order_index: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FeedbackCreate(BaseModel):
    shared_item_description: str
    platform_source: str
    custom_platform_source: Optional[str] = None
    feedback_received: str


class FeedbackResponse(BaseModel):
    id: str
    project_id: str
    logged_by_user_id: Optional[str] = None
    shared_item_description: str
    platform_source: str
    feedback_received: str
    logged_at: Optional[datetime] = None
