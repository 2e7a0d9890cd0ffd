from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import Caller
from app.modules.sections.schemas import SectionStatus
from app.modules.sections.service import SectionStatusService
from app.core.dependencies import get_current_caller
from supabase import Client

router = APIRouter(prefix="/projects", tags=["sections"])


def get_section_status_service(supabase: Client = Depends(get_supabase)) -> SectionStatusService:
    return SectionStatusService(supabase)


@router.get("/{project_id}/sections", response_model=SectionStatus)
async def get_section_status(
    project_id: str,
    caller: Caller = Depends(get_current_caller),
    service: SectionStatusService = Depends(get_section_status_service)
):
    """Which project sections have content (members only)"""
    return await service.get_section_status(project_id, caller)
