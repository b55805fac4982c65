import asyncio
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import async_session_maker
from app.services.consistency_service import audit_counters


async def check_counters() -> int:
    async with async_session_maker() as db:
        drift = await audit_counters(db)

    if not drift:
        print("All counters match their sources.")
        return 0

    print(f"{len(drift)} counter(s) out of sync:")
    for item in drift:
        print(f"  - {item.kind} {item.key}: cached={item.cached} actual={item.actual}")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(check_counters()))
