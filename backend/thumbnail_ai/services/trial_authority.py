"""SQL Trial Authority — the authoritative, server-side record of trial identities.

Invariants:
    - Unknown session id validates as a fresh visitor (full allowance)
    - Converted is terminal: validate() of a converted id is invalid forever, even if
      the client recreates local storage with the same id
    - sync() never lowers generations_used (a tampered client cannot reset its count)
    - record_generation() is the single authoritative increment point; a repeated call
      with the same generation_key does not increment again
    - convert() claims the record with one conditional UPDATE (WHERE converted_to_user
      IS NULL); the claim, the project insert and converted_project_id commit together,
      so concurrent or repeated transfers create exactly one project

Design Decisions:
    - Increments are conditional UPDATEs, not read-modify-write, so two requests racing
      on one identity cannot both count
    - expires_at is fixed at first insert; sync never extends a trial
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thumbnail_ai.core.cache_key import ensure_utc
from thumbnail_ai.core.document import sanitize_document
from thumbnail_ai.core.document_snapshot import document_from_snapshot, document_to_snapshot
from thumbnail_ai.core.domain_types import (
    AccountId, MAX_FREE_GENERATIONS, TRIAL_SESSION_TTL_HOURS, TrialSessionId,
)
from thumbnail_ai.core.generation_types import TextSuggestions, text_suggestions_from_dict
from thumbnail_ai.core.thumbnail_seed import project_name_for, seed_document
from thumbnail_ai.core.trial_session import (
    TransferResult, TrialValidation, utc_now, validate_remote_record,
)
from thumbnail_ai.infrastructure.database import map_db_error
from thumbnail_ai.models.guest_session import GuestSession
from thumbnail_ai.models.project import Project

logger = logging.getLogger(__name__)


class SqlTrialAuthority:
    """TrialAuthority over the guest_sessions and projects tables."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.clock = clock

    async def validate(self, session_id: TrialSessionId) -> TrialValidation:
        row = await self._fetch(session_id)
        if row is None:
            return TrialValidation(True, MAX_FREE_GENERATIONS)
        return validate_remote_record(
            row.generations_used, row.expires_at, row.converted_to_user, self.clock(),
        )

    async def sync(
        self, session_id: TrialSessionId, generations_used: int,
        asset_ref: str | None = None,
    ) -> int:
        """Upsert the mirror. The stored count only moves up."""
        requested = max(0, generations_used)
        try:
            row = await self._fetch(session_id)
            if row is None:
                try:
                    self.db.add(self._new_row(session_id, requested, asset_ref))
                    await self.db.commit()
                    return requested
                except IntegrityError:
                    await self.db.rollback()
                    row = await self._fetch(session_id)
            if requested < row.generations_used:
                logger.warning(
                    f"Ignoring attempt to lower generation count "
                    f"({row.generations_used} -> {requested})",
                    extra={"trial_session_id": session_id},
                )
            row.generations_used = max(row.generations_used, requested)
            if asset_ref:
                row.asset_ref = asset_ref
            await self.db.commit()
            return row.generations_used
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "trial_sync")

    async def record_generation(
        self, session_id: TrialSessionId, generation_key: str,
        asset_ref: str | None = None,
        text_suggestions: TextSuggestions | None = None,
    ) -> int:
        """Count one successful generation, at most once per generation_key."""
        values = {
            "generations_used": GuestSession.generations_used + 1,
            "last_generation_key": generation_key,
            "asset_ref": asset_ref,
            "text_suggestions": text_suggestions.to_dict() if text_suggestions else None,
        }
        counted = update(GuestSession).where(
            GuestSession.id == session_id,
            or_(
                GuestSession.last_generation_key.is_(None),
                GuestSession.last_generation_key != generation_key,
            ),
        ).values(**values).execution_options(synchronize_session=False)
        try:
            result = await self.db.execute(counted)
            if result.rowcount == 0 and await self._fetch(session_id) is None:
                row = self._new_row(session_id, 1, asset_ref)
                row.last_generation_key = generation_key
                row.text_suggestions = values["text_suggestions"]
                self.db.add(row)
            await self.db.commit()
        except IntegrityError:
            # Lost the first-insert race: the row exists now, count against it.
            await self.db.rollback()
            try:
                await self.db.execute(counted)
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise map_db_error(e, "trial_record_generation")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "trial_record_generation")

        row = await self._fetch(session_id)
        logger.info(
            f"Trial generation recorded (used={row.generations_used})",
            extra={"trial_session_id": session_id},
        )
        return row.generations_used

    async def convert(
        self, session_id: TrialSessionId, account_id: AccountId,
        document_snapshot: dict | None = None,
    ) -> TransferResult:
        """Claim the trial for account_id and create its project, exactly once."""
        row = await self._fetch(session_id)
        if row is None:
            return TransferResult(transferred=False, remote_record_found=False)
        if row.converted_to_user:
            return self._already_converted(row)

        project_id = uuid.uuid4()
        try:
            claimed = await self.db.execute(
                update(GuestSession)
                .where(
                    GuestSession.id == session_id,
                    GuestSession.converted_to_user.is_(None),
                )
                .values(converted_to_user=account_id)
                .execution_options(synchronize_session=False),
            )
            if claimed.rowcount == 0:
                await self.db.rollback()
                row = await self._fetch(session_id)
                return self._already_converted(row)

            project = self._seed_project(row, account_id, project_id, document_snapshot)
            if project is not None:
                self.db.add(project)
                await self.db.execute(
                    update(GuestSession)
                    .where(GuestSession.id == session_id)
                    .values(converted_project_id=project_id)
                    .execution_options(synchronize_session=False),
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "trial_convert")

        created = str(project_id) if project is not None else None
        logger.info(
            f"Trial converted to account {account_id}",
            extra={"trial_session_id": session_id, "project_id": created},
        )
        return TransferResult(
            transferred=True, project_id=created, converted_to=account_id,
        )

    def _seed_project(
        self, row: GuestSession, account_id: AccountId, project_id: uuid.UUID,
        document_snapshot: dict | None,
    ) -> Project | None:
        suggestions = text_suggestions_from_dict(row.text_suggestions)
        if document_snapshot:
            document = sanitize_document(document_from_snapshot(document_snapshot))
        elif row.asset_ref or suggestions:
            document = seed_document(row.asset_ref, suggestions)
        else:
            return None
        return Project(
            id=project_id,
            owner_id=account_id,
            name=project_name_for(suggestions, from_trial=True),
            video_title=suggestions.headline if suggestions else None,
            canvas_state=document_to_snapshot(document),
            thumbnail_url=row.asset_ref,
        )

    def _already_converted(self, row: GuestSession) -> TransferResult:
        logger.info(
            "Trial already converted, transfer is a no-op",
            extra={"trial_session_id": row.id},
        )
        return TransferResult(
            transferred=False,
            project_id=str(row.converted_project_id) if row.converted_project_id else None,
            already_converted=True,
            converted_to=row.converted_to_user,
        )

    def _new_row(
        self, session_id: TrialSessionId, generations_used: int, asset_ref: str | None,
    ) -> GuestSession:
        now = ensure_utc(self.clock())
        return GuestSession(
            id=session_id,
            generations_used=generations_used,
            asset_ref=asset_ref,
            created_at=now,
            expires_at=now + timedelta(hours=TRIAL_SESSION_TTL_HOURS),
        )

    async def _fetch(self, session_id: TrialSessionId) -> GuestSession | None:
        # populate_existing: conditional UPDATEs bypass the identity map
        query = (
            select(GuestSession)
            .where(GuestSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise map_db_error(e, "trial_fetch")
        return result.scalar_one_or_none()
