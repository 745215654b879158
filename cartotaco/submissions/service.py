from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..auth.provider import AuthProvider, resolve_user
from ..datasource import DataSource
from ..results import ServiceResult
from .models import LocationSubmission, SubmissionStats, SubmissionUpdate

logger = logging.getLogger(__name__)

SUBMISSIONS_TABLE = "location_submissions"
_STATUSES = ("pending", "approved", "rejected")


class SubmissionService:
    """Create and inspect the signed-in user's location submissions."""

    def __init__(self, source: DataSource, auth: AuthProvider) -> None:
        self._source = source
        self._auth = auth

    async def submit(self, submission: LocationSubmission) -> ServiceResult:
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail("You must be logged in to submit a location")

        row = {
            "user_id": user["id"],
            **submission.model_dump(),
            "status": "pending",
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        }
        result = await self._source.insert(SUBMISSIONS_TABLE, row)
        if result.error is not None:
            logger.warning("Submission insert failed: %s", result.error.message)
            return ServiceResult.fail(f"Failed to submit location: {result.error.message}")
        return ServiceResult.ok((result.data or [row])[0])

    async def list_submissions(self, status: str | None = None) -> ServiceResult:
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail("You must be logged in to view submissions")

        filters = {"user_id": user["id"]}
        if status:
            filters["status"] = status
        result = await self._source.select(
            SUBMISSIONS_TABLE, filters, order_by="submitted_at", descending=True,
        )
        if result.error is not None:
            return ServiceResult.fail(f"Failed to fetch submissions: {result.error.message}")
        return ServiceResult.ok(result.data or [])

    async def get(self, submission_id: str) -> ServiceResult:
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail("You must be logged in to view this submission")

        result = await self._source.select(SUBMISSIONS_TABLE, {"id": submission_id, "user_id": user["id"]})
        if result.error is not None:
            return ServiceResult.fail(f"Failed to fetch submission: {result.error.message}")
        if not result.data:
            return ServiceResult.fail("Submission not found")
        return ServiceResult.ok(result.data[0])

    async def update(self, submission_id: str, changes: SubmissionUpdate) -> ServiceResult:
        """
        Edit a pending submission. The merged record is validated as a whole,
        so an invalid combination raises ``pydantic.ValidationError``.
        """
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail("You must be logged in to update a submission")

        filters = {"id": submission_id, "user_id": user["id"], "status": "pending"}
        current = await self._source.select(SUBMISSIONS_TABLE, filters)
        if current.error is not None:
            return ServiceResult.fail(f"Failed to update submission: {current.error.message}")
        if not current.data:
            return ServiceResult.fail("No pending submission with that id")

        row = current.data[0]
        merged = {name: row.get(name) for name in LocationSubmission.model_fields}
        merged.update(changes.model_dump(exclude_unset=True))
        validated = LocationSubmission.model_validate(merged)

        result = await self._source.update(
            SUBMISSIONS_TABLE,
            filters,
            {**validated.model_dump(), "updated_at": datetime.now(timezone.utc).isoformat()},
        )
        if result.error is not None:
            logger.warning("Submission update failed: %s", result.error.message)
            return ServiceResult.fail(f"Failed to update submission: {result.error.message}")
        if not result.data:
            return ServiceResult.fail("No pending submission with that id")
        return ServiceResult.ok(result.data[0])

    async def stats(self) -> ServiceResult:
        listed = await self.list_submissions()
        if not listed.success:
            return listed
        rows = listed.data
        counts = {status: sum(1 for r in rows if r.get("status") == status) for status in _STATUSES}
        return ServiceResult.ok(SubmissionStats(total=len(rows), **counts).model_dump())

    async def delete(self, submission_id: str) -> ServiceResult:
        """Only pending submissions can be withdrawn."""
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail("You must be logged in to delete a submission")

        result = await self._source.delete(
            SUBMISSIONS_TABLE, {"id": submission_id, "user_id": user["id"], "status": "pending"},
        )
        if result.error is not None:
            return ServiceResult.fail(f"Failed to delete submission: {result.error.message}")
        if not result.data:
            return ServiceResult.fail("No pending submission with that id")
        return ServiceResult.ok()
