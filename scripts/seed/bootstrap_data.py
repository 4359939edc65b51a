"""
Bootstrap seed data (async, idempotent)
- Promotes a synced member to SUPER_ADMIN so the admin screens become reachable
- Creates a local admin account (password from BOOTSTRAP_ADMIN_PASSWORD)
- Loads a criteria workbook into a track and optionally publishes it
Run:  python scripts/seed/bootstrap_data.py --admin jdoe --criteria member_criteria.xlsx --track MEMBER --publish
      BOOTSTRAP_ADMIN_PASSWORD=... python scripts/seed/bootstrap_data.py --admin-account root --admin-email root@example.com
"""

import os, sys
import argparse
import asyncio
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from sqlalchemy.ext.asyncio import AsyncSession
from reward_points.core.database import async_session_maker, engine
from reward_points.models.base import Base
import reward_points.models  # noqa: F401  registers every table on Base.metadata
from reward_points.models.shared.enums import CriteriaTrack, Role
from reward_points.schemas.admin.admin_schema import AdminAccountCreate
from reward_points.schemas.directory.member_schema import MemberUpdate
from reward_points.services.admin.admin_service import AdminAccountService
from reward_points.services.criteria.criteria_service import CriteriaService
from reward_points.services.directory.member_service import MemberService

SYSTEM_ACTOR = "system"

# ----------------------------------------------------------------------
# SEED STEPS
# ----------------------------------------------------------------------

async def promote_admin(db: AsyncSession, username: str):
    members = MemberService(db)
    member = await members.find_by_username(username)
    if member is None:
        raise SystemExit(f"Member '{username}' not found; log in once or run a directory sync first")
    if member.role == Role.SUPER_ADMIN:
        print(f"✓ {username} is already SUPER_ADMIN")
        return
    await members.update_member(member.employee_id, MemberUpdate(role_id=Role.SUPER_ADMIN), SYSTEM_ACTOR)
    print(f"✓ {username} promoted to SUPER_ADMIN")

async def create_admin_account(db: AsyncSession, username: str, email: str):
    service = AdminAccountService(db)
    if await service.find_by_username(username):
        print(f"✓ Admin account {username} already exists")
        return
    password = os.environ.get("BOOTSTRAP_ADMIN_PASSWORD")
    if not password:
        raise SystemExit("Set BOOTSTRAP_ADMIN_PASSWORD to create an admin account")
    account = await service.create_admin(
        AdminAccountCreate(username=username, password=password, email=email, first_name="Admin", last_name=username),
        SYSTEM_ACTOR,
    )
    print(f"✓ Admin account {username} created as {account.member_employee_id}")

async def load_criteria(db: AsyncSession, path: str, track: CriteriaTrack, publish: bool):
    with open(path, "rb") as f:
        content = f.read()
    service = CriteriaService(db)
    result = await service.import_from_excel(content, track, SYSTEM_ACTOR)
    print(f"✓ Criteria {track.value}: {result.created} created, {result.skipped} skipped")
    for error in result.errors:
        print(f"  ! {error}")
    if publish:
        count = await service.publish_all(track, SYSTEM_ACTOR)
        print(f"✓ {count} criteria published")

# ----------------------------------------------------------------------
# ASYNC ENTRY POINT
# ----------------------------------------------------------------------

async def main(args):
    # Create tables (safe if already created)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as db:
        try:
            if args.admin:
                await promote_admin(db, args.admin)
            if args.admin_account:
                if not args.admin_email:
                    raise SystemExit("--admin-account needs --admin-email")
                await create_admin_account(db, args.admin_account, args.admin_email)
            if args.criteria:
                await load_criteria(db, args.criteria, CriteriaTrack(args.track), args.publish)
            print("✅ Bootstrap seed completed successfully!")
        except Exception as ex:
            await db.rollback()
            print(f"❌ Seed failed: {ex}")
            raise

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Bootstrap reward points data")
    parser.add_argument("--admin", help="username to promote to SUPER_ADMIN")
    parser.add_argument("--admin-account", help="username of a local admin account to create")
    parser.add_argument("--admin-email", help="email of the local admin account")
    parser.add_argument("--criteria", help="path to a criteria .xlsx workbook")
    parser.add_argument("--track", default=CriteriaTrack.MEMBER.value, choices=[t.value for t in CriteriaTrack])
    parser.add_argument("--publish", action="store_true", help="publish every draft in the track after loading")
    asyncio.run(main(parser.parse_args()))
