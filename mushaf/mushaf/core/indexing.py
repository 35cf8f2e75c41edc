"""
Reindexing of ayah addresses.

An ayah's address is (surah_id, ayah_number, number_in_quran). Changing it is
the one place where positional conflicts are detected. Every request moves
through a small state machine::

    PROPOSED -> VALIDATED -> COMMITTED
    PROPOSED -> REJECTED

Validation reads current committed state (nothing is cached) and the commit is
a single conditional UPDATE that repeats the collision check, so a lost race
fails with NotFoundError or ConflictError instead of corrupting the corpus.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mushaf.core.corpus import OrderingViolation, find_ordering_violations
from mushaf.data import TOTAL_AYAHS, validate_surah_id
from mushaf.exceptions import ConflictError, NotFoundError, ValidationError
from mushaf.models import Ayah
from mushaf.storage.database import Database

logger = logging.getLogger(__name__)


class ReindexState(str, Enum):
    PROPOSED = "proposed"
    VALIDATED = "validated"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass
class ReindexProposal:
    """
    A request to move one ayah to a new address.

    Attributes:
        ayah_id: Ayah being moved
        surah_id: Target surah
        ayah_number: Target position within the surah
        number_in_quran: Target global position
        state: Where the request is in its lifecycle
        original: Ayah as it was when validated
        conflict_with: Id of the ayah that blocked the move, if any
        reason: Why the request was rejected
    """

    ayah_id: int
    surah_id: int
    ayah_number: int
    number_in_quran: int
    state: ReindexState = ReindexState.PROPOSED
    original: Optional[Ayah] = None
    conflict_with: Optional[int] = None
    reason: Optional[str] = None

    @property
    def target(self) -> tuple[int, int, int]:
        return (self.surah_id, self.ayah_number, self.number_in_quran)


class IndexingEngine:
    """
    Validates and applies ayah address changes.

    The engine guarantees the result is internally consistent. It does not
    decide who may call it; callers restrict it to administrators.

    Args:
        db: Storage handle
        enforce_order: Also require the target global position to fall strictly
            between those of the neighbouring ayahs in (surah, ayah) order
    """

    def __init__(self, db: Database, enforce_order: bool = True):
        self.db = db
        self.enforce_order = enforce_order

    def propose(self, ayah_id: int, surah_id: int, ayah_number: int, number_in_quran: int) -> ReindexProposal:
        return ReindexProposal(
            ayah_id=ayah_id,
            surah_id=surah_id,
            ayah_number=ayah_number,
            number_in_quran=number_in_quran,
        )

    def validate(self, proposal: ReindexProposal) -> ReindexProposal:
        """
        Check a proposal against the current corpus.

        On success the proposal becomes VALIDATED. On failure it becomes
        REJECTED and the error is raised.

        Raises:
            ValidationError: Target out of range, or proposal not PROPOSED
            NotFoundError: The ayah does not exist
            ConflictError: Another ayah holds the target address or ordering
                would break
        """
        if proposal.state is not ReindexState.PROPOSED:
            raise ValidationError(f"Cannot validate a {proposal.state.value} proposal")
        try:
            self._check_ranges(proposal)
            proposal.original = self._load(proposal.ayah_id)
            self._check_collision(proposal)
            if self.enforce_order:
                self._check_neighbours(proposal)
        except (ValidationError, NotFoundError, ConflictError) as e:
            proposal.state = ReindexState.REJECTED
            proposal.reason = str(e)
            if isinstance(e, ConflictError):
                proposal.conflict_with = e.entity_id
            logger.info("Reindex of ayah %s to %s rejected: %s", proposal.ayah_id, proposal.target, e)
            raise

        proposal.state = ReindexState.VALIDATED
        return proposal

    def commit(self, proposal: ReindexProposal) -> Ayah:
        """
        Apply a validated proposal in one atomic write.

        Raises:
            ValidationError: Proposal was not validated
            NotFoundError: The ayah vanished after validation
            ConflictError: Another ayah took the target address after validation
        """
        if proposal.state is not ReindexState.VALIDATED:
            raise ValidationError(f"Cannot commit a {proposal.state.value} proposal")

        try:
            cursor = self.db.execute_query(
                """
                UPDATE ayahs
                SET surah_id = ?, ayah_number = ?, number_in_quran = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                  AND NOT EXISTS (
                    SELECT 1 FROM ayahs other
                    WHERE other.id != ?
                      AND ((other.surah_id = ? AND other.ayah_number = ?) OR other.number_in_quran = ?)
                  )
                """,
                (
                    proposal.surah_id, proposal.ayah_number, proposal.number_in_quran,
                    proposal.ayah_id,
                    proposal.ayah_id, proposal.surah_id, proposal.ayah_number, proposal.number_in_quran,
                ),
            )
            if cursor.rowcount == 0:
                # Lost a race: find out which way
                self._load(proposal.ayah_id)
                self._check_collision(proposal)
                raise ConflictError(
                    f"Reindex of ayah {proposal.ayah_id} was not applied",
                    entity="ayah",
                    entity_id=proposal.ayah_id,
                )
        except (NotFoundError, ConflictError) as e:
            proposal.state = ReindexState.REJECTED
            proposal.reason = str(e)
            if isinstance(e, ConflictError):
                proposal.conflict_with = e.entity_id
            raise

        proposal.state = ReindexState.COMMITTED
        ayah = self._load(proposal.ayah_id)
        original = proposal.original
        logger.info(
            "Reindexed ayah %s: %s:%s -> %s:%s (number %s)",
            proposal.ayah_id,
            original.surah_id if original else "?",
            original.ayah_number if original else "?",
            ayah.surah_id,
            ayah.ayah_number,
            ayah.number_in_quran,
        )
        return ayah

    def reindex(self, ayah_id: int, surah_id: int, ayah_number: int, number_in_quran: int) -> Ayah:
        """Propose, validate and commit in one call."""
        proposal = self.propose(ayah_id, surah_id, ayah_number, number_in_quran)
        self.validate(proposal)
        return self.commit(proposal)

    def check_ordering(self) -> list[OrderingViolation]:
        return find_ordering_violations(self.db)

    def _load(self, ayah_id: int) -> Ayah:
        row = self.db.fetch_one("SELECT * FROM ayahs WHERE id = ?", (ayah_id,))
        if row is None:
            raise NotFoundError(f"Ayah {ayah_id} not found", entity="ayah", entity_id=ayah_id)
        return Ayah.model_validate(dict(row))

    @staticmethod
    def _check_ranges(proposal: ReindexProposal) -> None:
        validate_surah_id(proposal.surah_id)
        if proposal.ayah_number < 1:
            raise ValidationError(f"Ayah number must be at least 1, got {proposal.ayah_number}")
        if not 1 <= proposal.number_in_quran <= TOTAL_AYAHS:
            raise ValidationError(
                f"Global position must be between 1 and {TOTAL_AYAHS}, got {proposal.number_in_quran}"
            )

    def _check_collision(self, proposal: ReindexProposal) -> None:
        row = self.db.fetch_one(
            """
            SELECT id, surah_id, ayah_number, number_in_quran FROM ayahs
            WHERE id != ?
              AND ((surah_id = ? AND ayah_number = ?) OR number_in_quran = ?)
            ORDER BY id
            LIMIT 1
            """,
            (proposal.ayah_id, proposal.surah_id, proposal.ayah_number, proposal.number_in_quran),
        )
        if row is None:
            return
        if (row["surah_id"], row["ayah_number"]) == (proposal.surah_id, proposal.ayah_number):
            clash = f"address {proposal.surah_id}:{proposal.ayah_number}"
        else:
            clash = f"global position {proposal.number_in_quran}"
        raise ConflictError(
            f"Ayah {row['surah_id']}:{row['ayah_number']} (id {row['id']}) already holds {clash}",
            entity="ayah",
            entity_id=row["id"],
        )

    def _check_neighbours(self, proposal: ReindexProposal) -> None:
        previous = self.db.fetch_one(
            """
            SELECT id, surah_id, ayah_number, number_in_quran FROM ayahs
            WHERE id != ? AND (surah_id < ? OR (surah_id = ? AND ayah_number < ?))
            ORDER BY surah_id DESC, ayah_number DESC
            LIMIT 1
            """,
            (proposal.ayah_id, proposal.surah_id, proposal.surah_id, proposal.ayah_number),
        )
        if previous is not None and previous["number_in_quran"] >= proposal.number_in_quran:
            raise ConflictError(
                f"Global position {proposal.number_in_quran} must be greater than "
                f"{previous['number_in_quran']} held by preceding ayah {previous['surah_id']}:{previous['ayah_number']}",
                entity="ayah",
                entity_id=previous["id"],
            )

        following = self.db.fetch_one(
            """
            SELECT id, surah_id, ayah_number, number_in_quran FROM ayahs
            WHERE id != ? AND (surah_id > ? OR (surah_id = ? AND ayah_number > ?))
            ORDER BY surah_id, ayah_number
            LIMIT 1
            """,
            (proposal.ayah_id, proposal.surah_id, proposal.surah_id, proposal.ayah_number),
        )
        if following is not None and following["number_in_quran"] <= proposal.number_in_quran:
            raise ConflictError(
                f"Global position {proposal.number_in_quran} must be less than "
                f"{following['number_in_quran']} held by following ayah {following['surah_id']}:{following['ayah_number']}",
                entity="ayah",
                entity_id=following["id"],
            )
