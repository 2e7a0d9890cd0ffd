"""
Expire Invitations Script
Moves pending invitations whose expiry has passed to 'expired'.
Can be run manually or as a cron job when the in-process sweeper is disabled.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import get_supabase
from app.modules.invitations.service import InvitationService
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Run a single expiry pass"""
    try:
        service = InvitationService(get_supabase())
        count = service.expire_stale_invitations()
        logger.info(f"Expiry pass completed: {count} invitation(s) expired")
    except Exception as e:
        logger.error(f"Error during invitation expiry: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
