"""
Unit tests for CandidateService.

All database I/O is replaced with AsyncMock objects so tests run without a
real database.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import CandidateAnonymised, InvalidFields, NotFound
from app.models.candidate import Candidate
from app.services.candidate_service import (
    ANONYMOUS_NAME,
    ANONYMOUS_PHONE,
    CandidateService,
    anonymous_email,
)
from app.services.duplicate_matcher import MatchReason


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
def _make_candidate(
    name: str = "Jane Doe",
    email: str = "jane@example.com",
    phone: str | None = "07700 900123",
    anonymised: bool = False,
) -> Candidate:
    candidate = Candidate()
    candidate.id = uuid.uuid4()
    candidate.name = name
    candidate.email = email
    candidate.phone = phone
    candidate.current_salary = 50000
    candidate.employment_history = [{"company": "Initech"}]
    candidate.anonymised_at = datetime.now(timezone.utc) if anonymised else None
    return candidate


def _apply(db, obj, values):
    for key, value in values.items():
        setattr(obj, key, value)
    return obj


def _make_service(*candidates: Candidate) -> tuple[CandidateService, dict[str, MagicMock]]:
    by_id = {c.id: c for c in candidates}

    candidate_repo = MagicMock()
    candidate_repo.get = AsyncMock(side_effect=lambda db, candidate_id: by_id.get(candidate_id))
    candidate_repo.update = AsyncMock(side_effect=_apply)
    candidate_repo.delete = AsyncMock(return_value=True)
    candidate_repo.list_contact_dates = AsyncMock(return_value=[])
    candidate_repo.find_duplicate_pool = AsyncMock(return_value=list(candidates))

    pipeline_repo = MagicMock()
    pipeline_repo.list_ids_for_candidate = AsyncMock(return_value=[uuid.uuid4()])
    pipeline_repo.delete_for_candidate = AsyncMock(return_value=1)

    placement_repo = MagicMock()
    placement_repo.delete_for_entries = AsyncMock(return_value=0)
    scorecard_repo = MagicMock()
    scorecard_repo.delete_for_entries = AsyncMock(return_value=0)

    activity_service = MagicMock()
    activity_service.log = AsyncMock()

    repos = {
        "candidate": candidate_repo,
        "pipeline": pipeline_repo,
        "placement": placement_repo,
        "scorecard": scorecard_repo,
        "activity": activity_service,
    }
    service = CandidateService(
        candidate_repo=candidate_repo,
        pipeline_repo=pipeline_repo,
        placement_repo=placement_repo,
        scorecard_repo=scorecard_repo,
        activity_service=activity_service,
    )
    return service, repos


# ---------------------------------------------------------------------------
# Anonymisation
# ---------------------------------------------------------------------------
class TestAnonymise:
    @pytest.mark.asyncio
    async def test_replaces_identity_and_clears_personal_data(self):
        candidate = _make_candidate()
        service, repos = _make_service(candidate)

        result = await service.anonymise(AsyncMock(), candidate.id)

        assert result.name == ANONYMOUS_NAME
        assert result.email == anonymous_email(candidate.id)
        assert result.email.endswith("@anonymised.local")
        assert result.phone == ANONYMOUS_PHONE
        assert result.current_salary is None
        assert result.employment_history == []
        assert result.is_anonymised
        assert result.gdpr_notes == "Anonymised per GDPR request"
        repos["activity"].log.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_is_idempotent(self):
        candidate = _make_candidate(anonymised=True)
        service, repos = _make_service(candidate)
        db = AsyncMock()

        await service.anonymise(db, candidate.id)

        repos["candidate"].update.assert_not_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_candidate_is_not_found(self):
        service, _ = _make_service()

        with pytest.raises(NotFound):
            await service.anonymise(AsyncMock(), uuid.uuid4())


class TestBulkOperations:
    @pytest.mark.asyncio
    async def test_bulk_anonymise_continues_past_failures(self):
        first, second = _make_candidate(), _make_candidate(email="b@example.com")
        service, repos = _make_service(first, second)
        missing = uuid.uuid4()

        result = await service.bulk_anonymise(AsyncMock(), [first.id, missing, second.id])

        assert result.success == 2
        assert result.failed == 1
        assert result.failed_ids == [missing]
        assert second.name == ANONYMOUS_NAME
        assert second.gdpr_notes == "Bulk anonymised for GDPR compliance"

        repos["activity"].log.assert_awaited_once()
        call = repos["activity"].log.call_args
        assert call.args[1] == "bulk_gdpr_anonymise"
        assert call.args[5] == {"count": 2, "failed": 1}

    @pytest.mark.asyncio
    async def test_bulk_anonymise_counts_already_anonymised_as_success(self):
        candidate = _make_candidate(anonymised=True)
        service, _ = _make_service(candidate)

        result = await service.bulk_anonymise(AsyncMock(), [candidate.id])

        assert result.success == 1
        assert result.failed == 0

    @pytest.mark.asyncio
    async def test_bulk_delete_counts_storage_failures(self):
        ok, broken = _make_candidate(), _make_candidate(email="x@example.com")
        service, repos = _make_service(ok, broken)

        async def _delete(db, candidate_id):
            if candidate_id == broken.id:
                raise SQLAlchemyError("locked")
            return True

        repos["candidate"].delete.side_effect = _delete
        db = AsyncMock()

        result = await service.bulk_delete(db, [ok.id, broken.id])

        assert result.success == 1
        assert result.failed_ids == [broken.id]
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_removes_pipeline_children(self):
        candidate = _make_candidate()
        service, repos = _make_service(candidate)
        entry_ids = [uuid.uuid4(), uuid.uuid4()]
        repos["pipeline"].list_ids_for_candidate.return_value = entry_ids

        await service.delete_candidate(AsyncMock(), candidate.id)

        assert repos["placement"].delete_for_entries.call_args.args[1] == entry_ids
        assert repos["scorecard"].delete_for_entries.call_args.args[1] == entry_ids
        repos["pipeline"].delete_for_candidate.assert_awaited_once()
        repos["candidate"].delete.assert_awaited_once()
        assert repos["activity"].log.call_args.args[1] == "candidate_deleted"


# ---------------------------------------------------------------------------
# GDPR status
# ---------------------------------------------------------------------------
class TestGDPRSummary:
    @pytest.mark.asyncio
    async def test_counts_each_bucket(self):
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)
        service, repos = _make_service()
        repos["candidate"].list_contact_dates.return_value = [
            (uuid.uuid4(), now - timedelta(days=10)),
            (uuid.uuid4(), now - timedelta(days=200)),
            (uuid.uuid4(), now - timedelta(days=400)),
            (uuid.uuid4(), now - timedelta(days=800)),
            (uuid.uuid4(), None),
        ]

        summary = await service.gdpr_summary(AsyncMock(), now)

        assert summary == {"active": 1, "stale": 1, "at_risk": 1, "expired": 2, "total": 5}


# ---------------------------------------------------------------------------
# Identity edits and duplicates
# ---------------------------------------------------------------------------
class TestUpdateIdentity:
    @pytest.mark.asyncio
    async def test_anonymised_candidate_cannot_be_edited(self):
        candidate = _make_candidate(anonymised=True)
        service, repos = _make_service(candidate)

        with pytest.raises(CandidateAnonymised):
            await service.update_identity(AsyncMock(), candidate.id, {"name": "Someone"})

        repos["candidate"].update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_email_is_invalid(self):
        candidate = _make_candidate()
        service, _ = _make_service(candidate)

        with pytest.raises(InvalidFields):
            await service.update_identity(AsyncMock(), candidate.id, {"email": "  "})

    @pytest.mark.asyncio
    async def test_updates_phone(self):
        candidate = _make_candidate()
        service, _ = _make_service(candidate)

        result = await service.update_identity(AsyncMock(), candidate.id, {"phone": "0161 496 0000"})

        assert result.phone == "0161 496 0000"


class TestDuplicates:
    @pytest.mark.asyncio
    async def test_finds_email_match_in_pool(self):
        candidate = _make_candidate(email="jane@example.com")
        twin = _make_candidate(name="J. Doe", email="JANE@example.com", phone=None)
        service, _ = _make_service(candidate, twin)

        matches = await service.find_duplicates(AsyncMock(), candidate.id)

        assert len(matches) == 1
        other, result = matches[0]
        assert other is twin
        assert MatchReason.EMAIL_EXACT in result.reasons

    @pytest.mark.asyncio
    async def test_anonymised_candidate_has_no_duplicates(self):
        candidate = _make_candidate(anonymised=True)
        service, repos = _make_service(candidate)

        assert await service.find_duplicates(AsyncMock(), candidate.id) == []
        repos["candidate"].find_duplicate_pool.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cannot_flag_self_as_duplicate(self):
        candidate = _make_candidate()
        service, _ = _make_service(candidate)

        with pytest.raises(InvalidFields):
            await service.flag_duplicate(AsyncMock(), candidate.id, candidate.id)

    @pytest.mark.asyncio
    async def test_flag_duplicate_links_records(self):
        candidate, original = _make_candidate(), _make_candidate(email="o@example.com")
        service, _ = _make_service(candidate, original)

        result = await service.flag_duplicate(AsyncMock(), candidate.id, original.id)

        assert result.potential_duplicate_of == original.id
