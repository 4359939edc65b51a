import itertools
from dataclasses import dataclass
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import reward_points.models  # noqa: F401
from reward_points.api.dependencies import get_attachment_storage
from reward_points.core.database import get_async_session
from reward_points.core.security import create_access_token
from reward_points.main import app
from reward_points.models.base import Base
from reward_points.models.criteria.criteria import Criteria
from reward_points.models.directory.member import Member
from reward_points.models.shared.enums import CriteriaTrack, CriteriaType, MemberStatus, Role
from reward_points.schemas.directory.member_schema import DirectoryRecord
from reward_points.services.approval.approval_service import ApprovalService
from reward_points.services.directory.directory_client import DirectoryProfile, get_directory_client
from reward_points.services.notification.notification_service import get_notifier
from reward_points.utils.file_handler import AttachmentStorage

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

_accomplishments = itertools.count(1)


class FakeNotifier:
    """Collects notifications instead of sending email"""

    def __init__(self):
        self.sent = []

    async def notify(self, notification) -> bool:
        self.sent.append(notification)
        return True


class FakeDirectoryClient:
    """In-memory directory keyed by username"""

    def __init__(self, profiles: Optional[Dict[str, DirectoryProfile]] = None, passwords: Optional[Dict[str, str]] = None):
        self.profiles = profiles or {}
        self.passwords = passwords or {}
        self.positions: Dict[str, List[str]] = {}

    async def authenticate(self, username: str, password: str) -> bool:
        return self.passwords.get(username) == password

    async def lookup_by_username(self, username: str) -> Optional[DirectoryProfile]:
        return self.profiles.get(username)

    async def lookup_by_email(self, email: str) -> Optional[DirectoryProfile]:
        for profile in self.profiles.values():
            if profile.member.email == email:
                return profile
        return None

    async def search(self, pattern: str) -> List[DirectoryRecord]:
        return [p.member for p in self.profiles.values() if pattern.lower() in p.member.username.lower()]

    async def list_by_position(self, position: str) -> List[str]:
        return list(self.positions.get(position, []))


@dataclass
class Hierarchy:
    director: Member
    manager: Member
    member: Member
    executive: Member
    admin: Member


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def storage(tmp_path) -> AttachmentStorage:
    return AttachmentStorage(str(tmp_path / "uploads"))


@pytest.fixture
def directory() -> FakeDirectoryClient:
    return FakeDirectoryClient()


@pytest.fixture
def approval_service(session, notifier, storage) -> ApprovalService:
    return ApprovalService(session, notifier=notifier, storage=storage)


@pytest.fixture
def make_member(session):
    async def _make_member(
        employee_id: str,
        role: Role = Role.MEMBER,
        manager_id: Optional[str] = None,
        director_id: Optional[str] = None,
        status: MemberStatus = MemberStatus.ACTIVE,
        title: Optional[str] = None,
    ) -> Member:
        member = Member(
            employee_id=employee_id,
            username=f"user{employee_id}",
            first_name="First",
            last_name=f"Last{employee_id}",
            email=f"user{employee_id}@example.com",
            title=title,
            manager_id=manager_id,
            director_id=director_id,
            role_id=int(role),
            status=status,
        )
        session.add(member)
        await session.commit()
        return member
    return _make_member


@pytest.fixture
def make_criteria(session):
    async def _make_criteria(
        points: int = 20,
        director_approval: bool = False,
        track: CriteriaTrack = CriteriaTrack.MEMBER,
        is_published: bool = True,
        category: str = "Delivery",
        criteria_type: CriteriaType = CriteriaType.BOTH,
    ) -> Criteria:
        criteria = Criteria(
            track=track,
            category=category,
            accomplishment=f"Accomplishment {next(_accomplishments)}",
            points=points,
            director_approval=director_approval,
            type=criteria_type,
            is_published=is_published,
        )
        session.add(criteria)
        await session.commit()
        return criteria
    return _make_criteria


@pytest.fixture
async def hierarchy(make_member) -> Hierarchy:
    """Director B, manager A reporting to B, member M and executive X under A and B, admin S"""
    director = await make_member("B100", Role.DIRECTOR, title="Director")
    manager = await make_member("A100", Role.MANAGER, manager_id="B100", title="Manager")
    member = await make_member("M100", Role.MEMBER, manager_id="A100", director_id="B100")
    executive = await make_member("X100", Role.EXEC, manager_id="A100", director_id="B100", title="Vp Sales")
    admin = await make_member("S100", Role.SUPER_ADMIN)
    return Hierarchy(director=director, manager=manager, member=member, executive=executive, admin=admin)


@pytest.fixture
def auth_headers():
    """Bearer headers for a member"""
    def _auth_headers(member: Member) -> dict:
        token = create_access_token(member.employee_id, {"role": int(member.role)})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
async def client(session_maker, notifier, storage, directory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_attachment_storage] = lambda: storage
    app.dependency_overrides[get_directory_client] = lambda: directory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
