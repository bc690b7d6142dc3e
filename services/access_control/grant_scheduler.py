# services/access_control/grant_scheduler.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from core.models import AccessGrant

logger = logging.getLogger(__name__)


class GrantExpiryScheduler:
    """Revokes time-boxed grants when their deadline passes"""

    def __init__(self, on_expiry: Callable[[str], object]):
        self.on_expiry = on_expiry
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def scheduled(self) -> Dict[str, asyncio.Task]:
        return dict(self._tasks)

    def schedule(self, grant: AccessGrant) -> Optional[asyncio.Task]:
        """Start (or replace) the expiry timer for the grant's camera. Must run inside an event loop."""
        expires_at = grant.expires_at
        if expires_at is None:
            return None

        self.cancel(grant.camera_id)
        task = asyncio.get_running_loop().create_task(
            self._expire_at(grant.camera_id, expires_at),
            name=f"grant_expiry_{grant.camera_id}",
        )
        self._tasks[grant.camera_id] = task
        logger.debug(f"⏲️ Grant for camera {grant.camera_id} expires at {expires_at.isoformat()}")
        return task

    async def _expire_at(self, camera_id: str, expires_at: datetime):
        try:
            delay = (expires_at - datetime.now(timezone.utc)).total_seconds()
            if delay > 0:
                await asyncio.sleep(delay)

            self.on_expiry(camera_id)
            logger.info(f"⌛ Grant expired for camera {camera_id}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Expiry callback failed for camera {camera_id}: {e}")
        finally:
            if self._tasks.get(camera_id) is asyncio.current_task():
                del self._tasks[camera_id]

    def cancel(self, camera_id: str) -> bool:
        task = self._tasks.pop(camera_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    async def stop(self):
        """Cancel every pending expiry"""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
