"""
Candidate repository: GDPR queries and duplicate-candidate prefiltering.
"""

from __future__ import annotations
from typing import Optional
from uuid import UUID
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.models.candidate import Candidate
from app.utils.identity import email_domain, normalize_email, normalize_name, normalize_phone
from .base import BaseRepository

logger = logging.getLogger(__name__)


class CandidateRepository(BaseRepository[Candidate]):
    """Repository for Candidate with GDPR and duplicate lookups."""

    def __init__(self):
        super().__init__(Candidate)

    async def list_contact_dates(
        self,
        db: AsyncSession
    ) -> list[tuple[UUID, Optional[object]]]:
        """(id, last_contact_date) for every non-anonymised candidate."""
        try:
            stmt = select(Candidate.id, Candidate.last_contact_date).where(Candidate.anonymised_at.is_(None))
            result = await db.execute(stmt)
            return [(row[0], row[1]) for row in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing candidate contact dates: {e}")
            raise

    async def find_duplicate_pool(
        self,
        db: AsyncSession,
        candidate: Candidate,
        limit: int = 200
    ) -> list[Candidate]:
        """
        Candidates that could plausibly match ``candidate``.

        Every candidate sharing the normalised email or phone is returned,
        however many there are. Same-name, same-domain candidates are a weaker
        signal and are capped at ``limit``. DuplicateMatcher makes the actual
        decision. Anonymised records are never offered as duplicates.
        """
        others = select(Candidate).where(
            Candidate.id != candidate.id,
            Candidate.anonymised_at.is_(None),
        )

        exact_keys = []
        email = normalize_email(candidate.email)
        if email:
            exact_keys.append(Candidate.email_normalized == email)
        phone = normalize_phone(candidate.phone)
        if phone:
            exact_keys.append(Candidate.phone_digits == phone)

        name = normalize_name(candidate.name)
        domain = email_domain(candidate.email)

        pool: dict[UUID, Candidate] = {}
        try:
            if exact_keys:
                stmt = others.where(or_(*exact_keys)).order_by(Candidate.created_at.asc())
                result = await db.execute(stmt)
                for other in result.scalars().all():
                    pool[other.id] = other

            if name and domain:
                stmt = (
                    others.where(
                        func.lower(func.trim(Candidate.name)) == name,
                        Candidate.email_normalized.like(f"%@{domain}"),
                    )
                    .order_by(Candidate.created_at.asc())
                    .limit(limit)
                )
                result = await db.execute(stmt)
                for other in result.scalars().all():
                    pool.setdefault(other.id, other)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching duplicate pool for candidate {candidate.id}: {e}")
            raise

        return list(pool.values())
