import logging
from typing import List
from datetime import datetime, timezone
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from reward_points.models.consent.consent_log import ConsentLog
from reward_points.models.directory.member import Member
from reward_points.schemas.consent.consent_schema import ConsentResponse, ConsentUpdate, ConsentWithMember

logger = logging.getLogger(__name__)


class ConsentService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_consent(self, employee_id: str, data: ConsentUpdate) -> ConsentResponse:
        """Record a member's consent choices, replacing earlier ones"""
        try:
            result = await self.session.execute(
                select(ConsentLog).where(ConsentLog.employee_id == employee_id)
            )
            consent = result.scalar_one_or_none()

            if consent:
                for field, value in data.model_dump().items():
                    setattr(consent, field, value)
                consent.updated_by = employee_id
                consent.updated_at = datetime.now(timezone.utc)
            else:
                consent = ConsentLog(employee_id=employee_id, created_by=employee_id, **data.model_dump())
                self.session.add(consent)

            await self.session.commit()
            await self.session.refresh(consent)
            logger.info(f"Consent logged for {employee_id}: {data.model_dump()}")
            return ConsentResponse.model_validate(consent, from_attributes=True)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error logging consent for {employee_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error logging consent"
            )

    async def get_consent_status(self, employee_id: str) -> ConsentResponse:
        """Current consent; members who never answered have every flag off"""
        result = await self.session.execute(
            select(ConsentLog).where(ConsentLog.employee_id == employee_id)
        )
        consent = result.scalar_one_or_none()
        if not consent:
            return ConsentResponse(employee_id=employee_id)
        return ConsentResponse.model_validate(consent, from_attributes=True)

    async def get_all_consent(self) -> List[ConsentWithMember]:
        result = await self.session.execute(
            select(ConsentLog, Member)
            .join(Member, Member.employee_id == ConsentLog.employee_id)
            .order_by(Member.last_name, Member.first_name)
        )
        rows = []
        for consent, member in result.all():
            row = ConsentWithMember.model_validate(consent, from_attributes=True)
            row.first_name = member.first_name
            row.last_name = member.last_name
            row.email = member.email
            rows.append(row)
        return rows
