"""
Run one reconciliation sweep immediately and print the per-order results.
"""
import argparse
import asyncio

from sammilan.database import close_db, get_db_context
from sammilan.logging_config import configure_logging
from sammilan.services.reconciliation_service import ReconciliationService


async def sweep(stale_minutes: int, batch_size: int):
    try:
        async with get_db_context() as db:
            service = ReconciliationService(
                db,
                stale_minutes=stale_minutes,
                batch_size=batch_size,
            )
            report = await service.sweep()
    finally:
        await close_db()
    
    for result in report.results:
        line = f"{result.order_id}: {result.outcome.value}"
        if result.payment_id:
            line += f" ({result.payment_id})"
        if result.error:
            line += f" error={result.error}"
        print(line)
    
    print(f"Checked {report.checked} donations: {report.counts}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--minutes", type=int, default=None, help="Staleness threshold in minutes")
    parser.add_argument("--max", type=int, default=None, help="Max donations to examine")
    args = parser.parse_args()
    
    configure_logging()
    asyncio.run(sweep(args.minutes, args.max))
