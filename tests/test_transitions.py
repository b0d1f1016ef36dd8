"""Tests for the status transition controller."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from securohelp.core.database import Base, as_utc, enable_sqlite_foreign_keys
from securohelp.core.errors import ConcurrencyConflict, InvalidStatus, NotFound, PersistenceError
from securohelp.models import Case, CaseStatus, CaseStatusHistory, Client, User
from securohelp.repositories.history import StatusHistoryRepository
from securohelp.services.cases import CaseService
from securohelp.services.ledger import verify_case_ledger
from securohelp.services.status_catalog import StatusCatalog, seed_statuses
from securohelp.services.transitions import TransitionController

NEW, DOCUMENTS, SENT, POSITIVE, NEGATIVE, APPEAL, LAWSUIT, CLOSED = range(1, 9)


def _ledger(db: Session, case_id) -> list[tuple[int | None, int]]:
    return [
        (row.from_status_id, row.to_status_id)
        for row in StatusHistoryRepository(db).for_case(case_id)
    ]


class TestApplyTransition:

    def test_transition_appends_one_ledger_row(self, db, make_case, agent, clock):
        case = make_case()
        clock.advance(minutes=5)

        updated = TransitionController(db, clock=clock).apply_transition(
            case.id, DOCUMENTS, "zbieramy dokumenty", agent.id,
        )

        assert updated.status_id == DOCUMENTS
        assert updated.status.code == "DOCUMENTS"
        assert updated.updated_by_user_id == agent.id
        rows = StatusHistoryRepository(db).for_case(case.id)
        assert len(rows) == 2
        assert rows[-1].from_status_id == NEW
        assert rows[-1].to_status_id == DOCUMENTS
        assert rows[-1].comment == "zbieramy dokumenty"
        assert rows[-1].changed_by_user_id == agent.id

    def test_default_comment(self, db, make_case, agent, clock):
        case = make_case()
        TransitionController(db, clock=clock).apply_transition(case.id, DOCUMENTS, None, agent.id)
        assert StatusHistoryRepository(db).latest(case.id).comment == "Status zmieniony"

    def test_same_status_is_noop(self, db, make_case, agent, clock):
        case = make_case()
        version = case.version

        result = TransitionController(db, clock=clock).apply_transition(
            case.id, NEW, "bez zmian", agent.id,
        )

        assert result.status_id == NEW
        assert result.version == version
        assert _ledger(db, case.id) == [(None, NEW)]
        assert result.documents_sent_date is None

    def test_send_decide_reopen_lifecycle(self, db, make_case, agent, clock):
        case = make_case()
        controller = TransitionController(db, clock=clock)

        sent_at = clock.advance(days=1)
        case = controller.apply_transition(case.id, SENT, "dokumenty wysłane", agent.id)
        assert case.status_id == SENT
        assert as_utc(case.documents_sent_date) == sent_at
        assert len(_ledger(db, case.id)) == 2

        decided_at = clock.advance(days=10)
        case = controller.apply_transition(case.id, POSITIVE, None, agent.id)
        assert as_utc(case.decision_date) == decided_at
        assert case.closed_date is None

        clock.advance(days=1)
        case = controller.apply_transition(case.id, NEW, "ponowne otwarcie", agent.id)
        assert case.status_id == NEW
        assert _ledger(db, case.id) == [
            (None, NEW), (NEW, SENT), (SENT, POSITIVE), (POSITIVE, NEW),
        ]
        assert as_utc(case.decision_date) == decided_at
        assert as_utc(case.documents_sent_date) == sent_at

    def test_milestones_first_write_wins(self, db, make_case, agent, clock):
        case = make_case()
        controller = TransitionController(db, clock=clock)

        first = clock.advance(days=1)
        controller.apply_transition(case.id, NEGATIVE, None, agent.id)
        clock.advance(days=1)
        controller.apply_transition(case.id, APPEAL, None, agent.id)
        clock.advance(days=1)
        case = controller.apply_transition(case.id, POSITIVE, None, agent.id)

        assert as_utc(case.decision_date) == first
        assert case.appeal_date is not None
        assert case.lawsuit_date is None

    def test_final_status_sets_closed_date_once(self, db, make_case, agent, clock):
        case = make_case()
        controller = TransitionController(db, clock=clock)

        closed_at = clock.advance(days=30)
        case = controller.apply_transition(case.id, CLOSED, "koniec", agent.id)
        assert as_utc(case.closed_date) == closed_at

        clock.advance(days=1)
        controller.apply_transition(case.id, LAWSUIT, None, agent.id)
        clock.advance(days=1)
        case = controller.apply_transition(case.id, CLOSED, None, agent.id)
        assert as_utc(case.closed_date) == closed_at
        assert case.lawsuit_date is not None

    def test_ledger_timestamp_never_goes_backwards(self, db, make_case, agent, clock):
        case = make_case()
        created_at = clock.now
        clock.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        TransitionController(db, clock=clock).apply_transition(case.id, DOCUMENTS, None, agent.id)

        rows = StatusHistoryRepository(db).for_case(case.id)
        assert as_utc(rows[-1].changed_at) == created_at
        assert verify_case_ledger(db, case.id).ok


class TestTransitionErrors:

    def test_unknown_status(self, db, make_case, agent, clock):
        case = make_case()
        with pytest.raises(InvalidStatus):
            TransitionController(db, clock=clock).apply_transition(case.id, 999, None, agent.id)
        db.expire_all()
        assert db.get(Case, case.id).status_id == NEW
        assert len(_ledger(db, case.id)) == 1

    def test_inactive_status(self, db, make_case, agent, clock):
        case = make_case()
        db.get(CaseStatus, APPEAL).is_active = False
        db.commit()

        with pytest.raises(InvalidStatus):
            TransitionController(db, clock=clock).apply_transition(case.id, APPEAL, None, agent.id)
        assert StatusCatalog(db).get_by_code("APPEAL").is_active is False

    def test_unknown_case(self, db, agent, clock):
        with pytest.raises(NotFound):
            TransitionController(db, clock=clock).apply_transition(uuid.uuid4(), DOCUMENTS, None, agent.id)

    def test_soft_deleted_case(self, db, make_case, agent, clock):
        case = make_case()
        CaseService(db, clock=clock).soft_delete(case.id, agent)
        with pytest.raises(NotFound):
            TransitionController(db, clock=clock).apply_transition(case.id, DOCUMENTS, None, agent.id)

    def test_inactive_user(self, db, make_case, agent, clock):
        case = make_case()
        agent.is_active = False
        db.commit()
        with pytest.raises(NotFound):
            TransitionController(db, clock=clock).apply_transition(case.id, DOCUMENTS, None, agent.id)


class TestAtomicity:

    def test_ledger_insert_failure_rolls_back_case_update(self, db, make_case, agent, clock):
        case = make_case()

        def _fail(mapper, connection, target):
            raise SQLAlchemyError("ledger write failed")

        event.listen(CaseStatusHistory, "before_insert", _fail)
        try:
            with pytest.raises(PersistenceError):
                TransitionController(db, clock=clock).apply_transition(
                    case.id, SENT, None, agent.id,
                )
        finally:
            event.remove(CaseStatusHistory, "before_insert", _fail)

        db.expire_all()
        stored = db.get(Case, case.id)
        assert stored.status_id == NEW
        assert stored.documents_sent_date is None
        assert _ledger(db, case.id) == [(None, NEW)]
        assert verify_case_ledger(db, case.id).ok


# ── Concurrency: two sessions on one file-backed database ───────────


@pytest.fixture()
def file_sessions(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)

    with factory() as setup:
        seed_statuses(setup)
        user = User(id=uuid.uuid4(), email="a@securohelp.test", first_name="A", last_name="B")
        client = Client(id=uuid.uuid4(), first_name="Jan", last_name="Nowak")
        setup.add_all([user, client])
        setup.commit()
        case = CaseService(setup).create(
            {"client_id": client.id, "incident_date": date(2025, 2, 1)}, user,
        )
        ids = {"user": user.id, "case": case.id}

    session_a, session_b = factory(), factory()
    yield session_a, session_b, ids
    session_a.close()
    session_b.close()
    engine.dispose()


class TestConcurrentTransitions:

    def test_interleaved_writer_is_retried_on_current_status(self, file_sessions):
        session_a, session_b, ids = file_sessions
        interleaved = []

        def _other_writer_commits_first(session, flush_context, instances):
            if interleaved:
                return
            interleaved.append(True)
            TransitionController(session_b).apply_transition(
                ids["case"], DOCUMENTS, "równoległa zmiana", ids["user"],
            )

        event.listen(session_a, "before_flush", _other_writer_commits_first)
        case = TransitionController(session_a).apply_transition(
            ids["case"], SENT, None, ids["user"],
        )

        assert interleaved
        assert case.status_id == SENT
        assert _ledger(session_a, ids["case"]) == [
            (None, NEW), (NEW, DOCUMENTS), (DOCUMENTS, SENT),
        ]
        assert verify_case_ledger(session_a, ids["case"]).ok

    def test_retries_exhausted_raises_conflict(self, file_sessions):
        session_a, session_b, ids = file_sessions
        targets = iter([DOCUMENTS, APPEAL, LAWSUIT, NEGATIVE])

        def _always_interleave(session, flush_context, instances):
            TransitionController(session_b).apply_transition(
                ids["case"], next(targets), None, ids["user"],
            )

        event.listen(session_a, "before_flush", _always_interleave)
        with pytest.raises(ConcurrencyConflict):
            TransitionController(session_a, max_retries=1).apply_transition(
                ids["case"], SENT, None, ids["user"],
            )
        event.remove(session_a, "before_flush", _always_interleave)

        session_a.expire_all()
        assert session_a.get(Case, ids["case"]).status_id == APPEAL
        assert verify_case_ledger(session_a, ids["case"]).ok
