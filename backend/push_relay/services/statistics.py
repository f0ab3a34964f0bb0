"""Statistics aggregator - message counters per origin and per device."""
import logging
from collections import defaultdict
from typing import Dict, List

from .store import RelayStore

logger = logging.getLogger(__name__)


class StatisticsService:
    """Adds the messages of a dispatch to the origin and device counters."""

    async def record(self, store: RelayStore, address: str, message_counts: Dict[int, int]) -> None:
        """Increment counters; `message_counts` is keyed by device id."""
        total = sum(message_counts.values())
        if total == 0:
            return

        await store.increment_origin_count(address, total)

        # One statement per distinct increment amount
        ids_by_count: Dict[int, List[int]] = defaultdict(list)
        for device_id, count in message_counts.items():
            if count:
                ids_by_count[count].append(device_id)
        for count, device_ids in ids_by_count.items():
            await store.increment_device_counts(count, device_ids)

        logger.debug(f"Recorded {total} messages for {address} across {len(message_counts)} devices")
