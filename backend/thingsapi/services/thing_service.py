"""
Things API: Thing Service (Business Logic)
============================================

What:  CRUD operations and validation rules for the `things` collection.
How:   Works on an AsyncSession handed in per call; returns ORM instances
       and leaves serialization to `thingsapi.serializers`.
Who:   Called by the route handlers in `thingsapi.routes.things`.

Error Handling Strategy:
    - Unknown or malformed identifiers raise NotFoundError (→ 404)
    - Rule violations raise ValidationError with field messages (→ 422)
    - Anything else raised by the database layer is wrapped in
      DatabaseError (→ 500, details logged server-side only)

ThingService is stateless; the module exposes a shared `thing_service`.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from thingsapi.exceptions import DatabaseError, NotFoundError, ValidationError
from thingsapi.models.thing import Thing, utcnow
from thingsapi.schemas.thing import ThingCreate, ThingUpdate

logger = logging.getLogger(__name__)

BLANK = "can't be blank"


def parse_id(raw_id: Any) -> Optional[int]:
    """Return the integer id for a path segment, or None if it cannot be one."""
    if isinstance(raw_id, int) and not isinstance(raw_id, bool):
        return raw_id if raw_id > 0 else None
    text = str(raw_id)
    if not text.isascii() or not text.isdigit():
        return None
    value = int(text)
    return value if value > 0 else None


def validate_fields(fields: Dict[str, Any], creating: bool) -> None:
    """
    Apply the resource rules to the fields present in a request body.

    Raises:
        ValidationError: with every failing field and its messages
    """
    errors: Dict[str, List[str]] = {}

    if creating or "name" in fields:
        name = fields.get("name")
        if name is None or not str(name).strip():
            errors.setdefault("name", []).append(BLANK)

    if errors:
        raise ValidationError(errors=errors, context={"fields": sorted(fields)})


class ThingService:
    """Business logic layer for thing operations."""

    async def list_things(self, db: AsyncSession) -> List[Thing]:
        """Every thing in the collection, ordered by id."""
        try:
            result = await db.execute(select(Thing).order_by(Thing.id))
            return list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing things: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve things. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_thing(self, db: AsyncSession, raw_id: Any) -> Thing:
        """
        Retrieve a single thing by identifier.

        Raises:
            NotFoundError: no thing with that id, or the id is malformed
            DatabaseError: query execution failed
        """
        thing_id = parse_id(raw_id)
        if thing_id is None:
            raise NotFoundError(resource="thing", resource_id=str(raw_id))

        try:
            result = await db.execute(select(Thing).where(Thing.id == thing_id))
            thing = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching thing %s: %s", thing_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the thing. Please try again.",
                context={"thing_id": thing_id},
            )

        if thing is None:
            raise NotFoundError(resource="thing", resource_id=str(thing_id))
        return thing

    def build_thing(self) -> Thing:
        """An unsaved, blank thing for the `new` form action."""
        return Thing()

    async def create_thing(self, db: AsyncSession, params: ThingCreate) -> Thing:
        """
        Validate and persist a new thing.

        The transaction is committed by `get_db_session` after the handler
        returns; flush assigns the id and timestamps here.
        """
        fields = params.model_dump()
        validate_fields(fields, creating=True)

        try:
            thing = Thing(name=fields["name"], description=fields.get("description"))
            db.add(thing)
            await db.flush()
        except Exception as e:
            logger.error("Unexpected error creating thing: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while saving the thing. Please try again.",
                context={"original_error": type(e).__name__},
            )

        logger.info("Thing created: %s", thing.id)
        return thing

    async def update_thing(self, db: AsyncSession, raw_id: Any, params: ThingUpdate) -> Thing:
        """
        Apply a partial update. Only keys present in the request body change.

        Raises:
            NotFoundError, ValidationError, DatabaseError
        """
        thing = await self.get_thing(db, raw_id)
        return await self.apply_update(db, thing, params)

    async def apply_update(self, db: AsyncSession, thing: Thing, params: ThingUpdate) -> Thing:
        """Validate and apply `params` to a thing already looked up."""
        fields = params.model_dump(exclude_unset=True)
        validate_fields(fields, creating=False)

        try:
            for key, value in fields.items():
                setattr(thing, key, value)
            thing.updated_at = utcnow()
            await db.flush()
        except Exception as e:
            logger.error("Database error updating thing %s: %s", thing.id, str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while saving the thing. Please try again.",
                context={"thing_id": thing.id, "original_error": type(e).__name__},
            )

        logger.info("Thing %s updated: %s", thing.id, sorted(fields))
        return thing

    async def destroy_thing(self, db: AsyncSession, raw_id: Any) -> None:
        thing = await self.get_thing(db, raw_id)
        try:
            await db.delete(thing)
            await db.flush()
        except Exception as e:
            logger.error("Database error deleting thing %s: %s", thing.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the thing. Please try again.",
                context={"thing_id": thing.id, "original_error": type(e).__name__},
            )
        logger.info("Thing %s destroyed", thing.id)


thing_service = ThingService()
