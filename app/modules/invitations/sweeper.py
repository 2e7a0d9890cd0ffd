import asyncio
import logging
from app.config.settings import settings
from app.database.supabase_client import get_supabase
from app.modules.invitations.service import InvitationService

logger = logging.getLogger(__name__)


async def expire_stale_invitations_once() -> int:
    """Run one expiry pass; the store calls run in a worker thread."""
    try:
        service = InvitationService(get_supabase())
        return await asyncio.to_thread(service.expire_stale_invitations)
    except Exception as e:
        logger.error(f"Error in invitation sweeper: {str(e)}")
        return 0


async def invitation_sweeper_loop():
    """Background task that periodically expires lapsed pending invitations"""
    while True:
        await expire_stale_invitations_once()
        await asyncio.sleep(settings.invitation_sweep_interval_seconds)
