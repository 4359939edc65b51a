import logging
from io import BytesIO
from typing import List, Optional
from datetime import datetime, timezone
from openpyxl import load_workbook
from sqlalchemy import select, func, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from reward_points.core.exceptions import ConflictError, NotFoundError, ValidationError
from reward_points.models.criteria.criteria import Criteria
from reward_points.models.rewards.reward_entry import RewardEntry
from reward_points.models.shared.enums import CriteriaTrack, CriteriaType
from reward_points.schemas.criteria.criteria_schema import (
    CriteriaCreate, CriteriaImportResult, CriteriaResponse, CriteriaUpdate
)
from reward_points.utils.helpers import parse_yes_no

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = ("category", "accomplishment", "points", "guidelines", "director_approval", "type", "remarks")


class CriteriaService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # region ========== Lookups ==========

    async def find(self, criteria_id: int, track: CriteriaTrack) -> Criteria:
        """Criteria by id within a track; ids from the other track never match"""
        result = await self.session.execute(
            select(Criteria).where(Criteria.id == criteria_id, Criteria.track == track)
        )
        criteria = result.scalar_one_or_none()
        if not criteria:
            raise NotFoundError(f"Criteria not found with id of {criteria_id}")
        return criteria

    async def get_criteria(self, criteria_id: int, track: CriteriaTrack) -> CriteriaResponse:
        return CriteriaResponse.model_validate(await self.find(criteria_id, track), from_attributes=True)

    async def get_all_criteria(
        self,
        track: CriteriaTrack,
        criteria_type: Optional[CriteriaType] = None,
        is_published: Optional[bool] = None,
        category: Optional[str] = None,
        director_approval: Optional[bool] = None,
    ) -> List[CriteriaResponse]:
        """List a track's catalog.

        A ``criteria_type`` of EXPERTS or DELIVERY also includes rows marked BOTH.
        """
        conditions = [Criteria.track == track]
        if criteria_type and criteria_type != CriteriaType.BOTH:
            conditions.append(or_(Criteria.type == criteria_type, Criteria.type == CriteriaType.BOTH))
        elif criteria_type:
            conditions.append(Criteria.type == CriteriaType.BOTH)
        if is_published is not None:
            conditions.append(Criteria.is_published == is_published)
        if category:
            conditions.append(Criteria.category == category)
        if director_approval is not None:
            conditions.append(Criteria.director_approval == director_approval)

        result = await self.session.execute(
            select(Criteria).where(*conditions).order_by(Criteria.category, Criteria.id)
        )
        return [CriteriaResponse.model_validate(c, from_attributes=True) for c in result.scalars().all()]

    async def get_categories(self, track: CriteriaTrack) -> List[str]:
        result = await self.session.execute(
            select(Criteria.category).where(Criteria.track == track).distinct().order_by(Criteria.category)
        )
        return list(result.scalars().all())

    # endregion

    # region ========== Maintenance ==========

    async def create_criteria(self, data: CriteriaCreate, created_by: str) -> CriteriaResponse:
        try:
            criteria = Criteria(**data.model_dump(), created_by=created_by)
            self.session.add(criteria)
            await self.session.commit()
            await self.session.refresh(criteria)

            logger.info(f"Criteria {criteria.id} ({criteria.track.value}) created by {created_by}")
            return CriteriaResponse.model_validate(criteria, from_attributes=True)

        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(
                f"Criteria '{data.category} / {data.accomplishment}' already exists in the {data.track.value} track"
            )
        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating criteria: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creating criteria"
            )

    async def update_criteria(
        self, criteria_id: int, track: CriteriaTrack, data: CriteriaUpdate, updated_by: str
    ) -> CriteriaResponse:
        """Edit a catalog row; ledger totals already posted keep their snapshot"""
        try:
            criteria = await self.find(criteria_id, track)
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(criteria, field, value)
            criteria.updated_by = updated_by
            criteria.updated_at = datetime.now(timezone.utc)

            await self.session.commit()
            await self.session.refresh(criteria)

            logger.info(f"Criteria {criteria_id} updated by {updated_by}")
            return CriteriaResponse.model_validate(criteria, from_attributes=True)

        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Another criteria with this category and accomplishment already exists")
        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating criteria {criteria_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error updating criteria"
            )

    async def delete_criteria(self, criteria_id: int, track: CriteriaTrack, deleted_by: str) -> bool:
        try:
            criteria = await self.find(criteria_id, track)
            references = await self.session.scalar(
                select(func.count(RewardEntry.id)).where(RewardEntry.criteria_id == criteria_id)
            )
            if references:
                raise ConflictError(f"Criteria {criteria_id} is referenced by {references} reward entries")

            await self.session.delete(criteria)
            await self.session.commit()
            logger.info(f"Criteria {criteria_id} deleted by {deleted_by}")
            return True

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting criteria {criteria_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error deleting criteria"
            )

    async def publish_criteria(self, criteria_id: int, track: CriteriaTrack, published_by: str) -> CriteriaResponse:
        criteria = await self.find(criteria_id, track)
        criteria.is_published = True
        criteria.updated_by = published_by
        await self.session.commit()
        await self.session.refresh(criteria)
        logger.info(f"Criteria {criteria_id} published by {published_by}")
        return CriteriaResponse.model_validate(criteria, from_attributes=True)

    async def publish_all(self, track: CriteriaTrack, published_by: str) -> int:
        """Publish every draft in a track; returns how many were published"""
        result = await self.session.execute(
            update(Criteria)
            .where(Criteria.track == track, Criteria.is_published == False)
            .values(is_published=True, updated_by=published_by, updated_at=datetime.now(timezone.utc))
        )
        await self.session.commit()
        logger.info(f"{result.rowcount} {track.value} criteria published by {published_by}")
        return result.rowcount or 0

    # endregion

    # region ========== Bulk Import ==========

    async def import_from_excel(
        self, content: bytes, track: CriteriaTrack, imported_by: str
    ) -> CriteriaImportResult:
        """Load draft criteria from the first sheet of a workbook.

        The first row holds the headers listed in ``IMPORT_COLUMNS``; rows
        that already exist in the track are skipped.
        """
        try:
            workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            logger.error(f"Unreadable criteria workbook: {e}")
            raise ValidationError("Uploaded file is not a valid Excel workbook")

        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            raise ValidationError("Workbook is empty")
        columns = [str(cell).strip().lower().replace(" ", "_") if cell is not None else "" for cell in header]
        missing = [name for name in ("category", "accomplishment", "points") if name not in columns]
        if missing:
            raise ValidationError(f"Missing columns: {', '.join(missing)}")

        existing = await self.session.execute(
            select(Criteria.category, Criteria.accomplishment).where(Criteria.track == track)
        )
        seen = {(category, accomplishment) for category, accomplishment in existing.all()}

        report = CriteriaImportResult()
        for line, values in enumerate(rows, start=2):
            row = {
                name: value for name, value in zip(columns, values) if name in IMPORT_COLUMNS
            }
            if not any(value not in (None, "") for value in row.values()):
                continue
            try:
                criteria = self._criteria_from_row(row, track, imported_by)
            except (TypeError, ValueError) as e:
                report.errors.append(f"Row {line}: {e}")
                continue

            key = (criteria.category, criteria.accomplishment)
            if key in seen:
                report.skipped += 1
                continue
            seen.add(key)
            self.session.add(criteria)
            report.created += 1

        try:
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error importing criteria: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error importing criteria"
            )

        logger.info(
            f"Criteria import ({track.value}) by {imported_by}: "
            f"{report.created} created, {report.skipped} skipped, {len(report.errors)} errors"
        )
        return report

    @staticmethod
    def _criteria_from_row(row: dict, track: CriteriaTrack, imported_by: str) -> Criteria:
        category = str(row.get("category") or "").strip()
        accomplishment = str(row.get("accomplishment") or "").strip()
        if not category or not accomplishment:
            raise ValueError("category and accomplishment are required")
        points = int(row.get("points"))
        if points <= 0:
            raise ValueError("points must be positive")
        raw_type = str(row.get("type") or CriteriaType.BOTH.value).strip().upper()

        return Criteria(
            track=track,
            category=category,
            accomplishment=accomplishment,
            points=points,
            guidelines=row.get("guidelines"),
            director_approval=parse_yes_no(row.get("director_approval")),
            type=CriteriaType(raw_type),
            remarks=row.get("remarks"),
            is_published=False,
            created_by=imported_by,
        )

    # endregion
