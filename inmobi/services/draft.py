"""
Saved property drafts and publishing them as listings.
"""

from typing import List
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.draft import PropertyDraft
from inmobi.models.property import Property
from inmobi.models.user import User
from inmobi.repositories.draft import DraftRepository
from inmobi.schemas.draft import DraftCreate, DraftUpdate
from inmobi.schemas.property import PropertyCreate
from inmobi.services.property import PropertyService
from inmobi.utils.exceptions import NotFoundError, ValidationError
import uuid
import logging

logger = logging.getLogger(__name__)


class DraftService:
    """Drafts are private: another user's draft id behaves as missing."""

    def __init__(self, db_session: AsyncSession, property_service: PropertyService):
        self.db = db_session
        self.draft_repo = DraftRepository(db_session)
        self.property_service = property_service

    async def _get_own_draft(self, draft_id: uuid.UUID, current_user: User) -> PropertyDraft:
        draft = await self.draft_repo.get_user_draft(current_user.id, draft_id)
        if draft is None:
            raise NotFoundError("Draft", str(draft_id))
        return draft

    async def list_drafts(self, current_user: User) -> List[PropertyDraft]:
        return await self.draft_repo.get_user_drafts(current_user.id)

    async def get_draft(self, draft_id: uuid.UUID, current_user: User) -> PropertyDraft:
        return await self._get_own_draft(draft_id, current_user)

    async def create_draft(self, data: DraftCreate, current_user: User) -> PropertyDraft:
        draft = await self.draft_repo.create({
            "user_id": current_user.id,
            "name": data.name,
            "form_data": data.form_data,
        })
        logger.info(f"Draft {draft.id} saved by user {current_user.id}")
        return draft

    async def update_draft(self, draft_id: uuid.UUID, data: DraftUpdate, current_user: User) -> PropertyDraft:
        draft = await self._get_own_draft(draft_id, current_user)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            return draft
        return await self.draft_repo.update_instance(draft, update_data)

    async def delete_draft(self, draft_id: uuid.UUID, current_user: User) -> None:
        draft = await self._get_own_draft(draft_id, current_user)
        await self.draft_repo.delete(draft.id)
        logger.info(f"Draft {draft_id} deleted by user {current_user.id}")

    async def publish_draft(self, draft_id: uuid.UUID, current_user: User) -> Property:
        """
        Turn a draft into a listing and delete the draft.

        Raises:
            ValidationError: If the saved form is not a complete, valid property
        """
        draft = await self._get_own_draft(draft_id, current_user)

        try:
            property_data = PropertyCreate.model_validate(draft.form_data or {})
        except PydanticValidationError as e:
            field_errors = [
                {
                    "field": ".".join(str(loc) for loc in error.get("loc", ())),
                    "message": error.get("msg", ""),
                    "type": error.get("type", ""),
                }
                for error in e.errors()
            ]
            raise ValidationError("Draft is not a valid property", field_errors=field_errors)

        prop = await self.property_service.create_property(property_data, current_user)
        await self.draft_repo.delete(draft.id)
        logger.info(f"Draft {draft_id} published as property {prop.id}")
        return prop
