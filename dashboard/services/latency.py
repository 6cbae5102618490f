import asyncio
import random
from typing import Optional

from dashboard.config import config


async def simulate_latency(ms: Optional[int] = None) -> None:
    """Sleep like a network round trip would. Bounds come from config unless ms is given."""
    if ms is None:
        ms = random.randint(config.LATENCY_MIN_MS, config.LATENCY_MAX_MS)
    if ms > 0:
        await asyncio.sleep(ms / 1000)
