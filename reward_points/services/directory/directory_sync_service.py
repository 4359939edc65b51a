import asyncio
import logging
from typing import Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from reward_points.core.config import settings
from reward_points.schemas.directory.member_schema import DirectorySyncReport, SyncError
from reward_points.services.directory.directory_client import DirectoryClient, DirectoryProfile
from reward_points.services.directory.member_service import MemberService

logger = logging.getLogger(__name__)

# Directors first so that managers and consultants find their reporting line in place
HIERARCHY_POSITIONS = ("Director", "Manager", "Consultant")


class DirectorySyncService:
    def __init__(
        self,
        session: AsyncSession,
        client: DirectoryClient,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ):
        self.session = session
        self.client = client
        self.member_service = MemberService(session)
        self.batch_size = batch_size or settings.DIRECTORY_SYNC_BATCH_SIZE
        self.batch_delay = settings.DIRECTORY_SYNC_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay

    async def sync_profile(self, profile: DirectoryProfile, report: Optional[DirectorySyncReport] = None):
        """Upsert the director, the manager and then the account itself"""
        report = report or DirectorySyncReport()
        seen = set()
        for record in (profile.director, profile.manager, profile.member):
            if record is None or record.employee_id in seen:
                continue
            seen.add(record.employee_id)
            _, outcome = await self.member_service.upsert_from_directory(record)
            self._count(report, outcome)
        return report

    async def sync_username(self, username: str) -> DirectorySyncReport:
        report = DirectorySyncReport()
        await self._sync_batch([username], report)
        return report

    async def map_hierarchy(self, positions: Iterable[str] = HIERARCHY_POSITIONS) -> DirectorySyncReport:
        """Refresh the member table from the directory, one position at a time.

        Accounts are processed in batches with a pause between batches so the
        directory gateway is not flooded. A failing account is recorded in
        the report and does not stop the run.
        """
        report = DirectorySyncReport()
        for position in positions:
            usernames = await self.client.list_by_position(position)
            logger.info(f"Directory sync: {len(usernames)} accounts with position {position}")

            batches = [usernames[i:i + self.batch_size] for i in range(0, len(usernames), self.batch_size)]
            for index, batch in enumerate(batches):
                await self._sync_batch(batch, report)
                if index < len(batches) - 1 and self.batch_delay:
                    await asyncio.sleep(self.batch_delay)

        logger.info(
            f"Directory sync finished: {report.processed} processed, {report.created} created, "
            f"{report.updated} updated, {report.unchanged} unchanged, {len(report.errors)} errors"
        )
        return report

    async def _sync_batch(self, usernames: List[str], report: DirectorySyncReport):
        for username in usernames:
            try:
                profile = await self.client.lookup_by_username(username)
                if profile is None:
                    raise LookupError("account not found in directory")
                await self.sync_profile(profile, report)
                await self.session.commit()
            except Exception as e:
                await self.session.rollback()
                logger.error(f"Directory sync failed for {username}: {e}")
                report.errors.append(SyncError(username=username, error=str(e)))

    @staticmethod
    def _count(report: DirectorySyncReport, outcome: str):
        report.processed += 1
        if outcome == "created":
            report.created += 1
        elif outcome == "updated":
            report.updated += 1
        else:
            report.unchanged += 1

