"""Background execution of mention processing.

The webhook handler acknowledges Slack first and then hands the mention to
MentionTaskRunner.submit(). Each mention runs as its own asyncio task, outside
the HTTP request, so finishing (or aborting) the response never cancels it.
"""

import asyncio
from typing import Optional, Set

from ..log import get_logger
from ..schemas.events import Mention
from .dispatcher import MentionDispatcher

logger = get_logger("runner")

class MentionTaskRunner:
    def __init__(self, dispatcher: MentionDispatcher, timeout: Optional[float] = None):
        self.dispatcher = dispatcher
        self.timeout = timeout
        # Strong references: the event loop only keeps weak ones to running tasks
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, mention: Mention) -> asyncio.Task:
        """Schedules a mention and returns immediately. Must be called from the running loop."""
        task = asyncio.create_task(self._run(mention), name=f"mention-{mention.channel}-{mention.ts}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info(f"Queued mention {mention.ts} from channel {mention.channel}")
        return task

    async def _run(self, mention: Mention) -> None:
        try:
            if self.timeout is None:
                await self.dispatcher.dispatch(mention)
            else:
                await asyncio.wait_for(self.dispatcher.dispatch(mention), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Mention {mention.ts} timed out after {self.timeout}s")
        except Exception:
            logger.exception(f"Mention task for {mention.ts} failed")

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Task {task.get_name()} was cancelled")

    async def drain(self) -> None:
        """Waits until every submitted mention has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancels whatever is still running and waits for it to wind down."""
        tasks = list(self._tasks)
        if tasks:
            logger.info(f"Cancelling {len(tasks)} pending mention task(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
