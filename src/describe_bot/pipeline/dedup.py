"""In-memory idempotency for Slack event redeliveries.

Slack retries an event when it does not see a fast 2xx. The same event_id must
not start a second mention task. Only recent ids are remembered and nothing is
persisted, so a restart forgets them.
"""

from collections import OrderedDict
from typing import Optional

class EventDeduplicator:
    def __init__(self, capacity: int = 1024):
        self.capacity = capacity
        self._seen: "OrderedDict[str, None]" = OrderedDict()

    def is_duplicate(self, event_id: Optional[str]) -> bool:
        """
        Records event_id and tells whether it was already seen.
        Events without an id are never treated as duplicates.
        """
        if not event_id:
            return False
        if event_id in self._seen:
            self._seen.move_to_end(event_id)
            return True
        self._seen[event_id] = None
        if len(self._seen) > self.capacity:
            self._seen.popitem(last=False)
        return False

    def __len__(self) -> int:
        return len(self._seen)
