"""
Run Digest Cycle

Runs one digest cycle outside the API process, the same as the hourly job.
Only staff whose local time is in their digest hour receive an email.

Usage:
    python scripts/run_digest_cycle.py
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from request_manager.core.database import close_db
from request_manager.modules.digest.jobs import send_daily_digests


async def run_digest_cycle() -> None:
    results = await send_daily_digests()
    print(json.dumps(results, indent=2))
    await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_digest_cycle())
