from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.db import AsyncSessionLocal

from app.services.discounts.discount_lifecycle_service import auto_expire_discounts

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("cron", hour=0, minute=10)  # daily @ 00:10
async def discount_lifecycle_job():
    async with AsyncSessionLocal() as db:
        await auto_expire_discounts(db)
