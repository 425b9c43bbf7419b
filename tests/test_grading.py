from types import SimpleNamespace

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from extensions import db
from models.assessment import Assessment, AssessmentScore
from models.registration import Registration, REGISTERED, DROPPED, COMPLETED
from models.section import Section
from services import enrollment
from services.errors import (
    AssessmentNotFound,
    InvalidAssessment,
    InvalidFinalGrade,
    PersistenceFailure,
    RegistrationNotFound,
    ScoreOutOfRange,
)
from services.grading import (
    FinalGradeEntry,
    ScoreEntry,
    complete_section,
    compute_final_grades,
    create_assessment,
    delete_assessment,
    letter_grade_for,
    overall_percentage,
    save_scores,
    section_roster,
)

from conftest import assert_counter_matches


@pytest.mark.parametrize(
    "pct, letter",
    [
        (100, "A"), (90, "A"), (89.99, "A-"), (85, "A-"), (80, "B+"), (79.5, "B"),
        (75, "B"), (70, "B-"), (65, "C+"), (60, "C"), (55, "C-"), (50, "D"),
        (49.99, "F"), (0, "F"),
    ],
)
def test_letter_grade_thresholds(pct, letter):
    assert letter_grade_for(pct) == letter


def test_overall_percentage_counts_missing_scores_as_zero():
    midterm = SimpleNamespace(id=1, max_score=100)
    final = SimpleNamespace(id=2, max_score=100)

    assert overall_percentage([midterm, final], {1: 80, 2: 70}) == pytest.approx(75.0)
    assert overall_percentage([midterm, final], {1: 80}) == pytest.approx(40.0)
    assert overall_percentage([midterm, final], {1: 80, 2: None}) == pytest.approx(40.0)


def test_overall_percentage_without_assessments():
    assert overall_percentage([], {}) == 0.0


@pytest.fixture
def sheet(factory, session):
    """A section with Midterm/Final (100 each) and two registered students."""
    teacher = factory.teacher()
    section = factory.section(teacher=teacher)
    midterm = factory.assessment(section, "Midterm", 100)
    final = factory.assessment(section, "Final", 100)
    alice = factory.student(last_name="Adams")
    bob = factory.student(last_name="Baker")
    reg_a = enrollment.register(session, alice.id, section.id)
    reg_b = enrollment.register(session, bob.id, section.id)
    return SimpleNamespace(
        section=section, teacher=teacher, midterm=midterm, final=final,
        alice=alice, bob=bob, reg_a=reg_a, reg_b=reg_b,
    )


def _score(session, registration_id, assessment_id):
    return session.execute(
        select(AssessmentScore).where(
            AssessmentScore.registration_id == registration_id,
            AssessmentScore.assessment_id == assessment_id,
        )
    ).scalar_one_or_none()


def test_save_scores_writes_scores_and_final_grades(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [
            ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 80),
            ScoreEntry(sheet.reg_a.id, sheet.final.id, 70),
        ],
        [FinalGradeEntry(sheet.reg_a.id, 75.0, "B")],
    )

    assert _score(session, sheet.reg_a.id, sheet.midterm.id).score_achieved == 80
    assert _score(session, sheet.reg_a.id, sheet.final.id).score_achieved == 70
    assert _score(session, sheet.reg_a.id, sheet.final.id).graded_at is not None

    reg = session.get(Registration, sheet.reg_a.id)
    assert reg.overall_percentage == 75.0
    assert reg.final_letter_grade == "B"


def test_save_scores_updates_existing_row(session, sheet):
    save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 50)], [])
    first_id = _score(session, sheet.reg_a.id, sheet.midterm.id).id

    save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 65)], [])

    row = _score(session, sheet.reg_a.id, sheet.midterm.id)
    assert row.id == first_id
    assert row.score_achieved == 65


def test_null_score_clears_but_keeps_row(session, sheet):
    save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 80)], [])
    save_scores(
        session,
        sheet.section.id,
        [
            ScoreEntry(sheet.reg_a.id, sheet.midterm.id, None),
            ScoreEntry(sheet.reg_b.id, sheet.midterm.id, None),  # nothing stored yet: no-op
        ],
        [],
    )

    row = _score(session, sheet.reg_a.id, sheet.midterm.id)
    assert row is not None
    assert row.score_achieved is None
    assert row.graded_at is None
    assert _score(session, sheet.reg_b.id, sheet.midterm.id) is None


def test_roster_reads_back_saved_and_cleared_scores(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [
            ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 80),
            ScoreEntry(sheet.reg_a.id, sheet.final.id, 70),
            ScoreEntry(sheet.reg_b.id, sheet.midterm.id, 90),
        ],
        [],
    )
    save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, sheet.final.id, None)], [])

    rows = section_roster(session, sheet.section.id)

    assert [r.registration.id for r in rows] == [sheet.reg_a.id, sheet.reg_b.id]
    assert rows[0].scores == {sheet.midterm.id: 80, sheet.final.id: None}
    assert rows[1].scores == {sheet.midterm.id: 90, sheet.final.id: None}
    assert rows[0].percentage == pytest.approx(40.0)
    assert rows[0].letter_grade == "F"


@pytest.mark.parametrize("bad", [101, -1, "abc"])
def test_out_of_range_score_writes_nothing(session, sheet, bad):
    with pytest.raises(ScoreOutOfRange) as exc:
        save_scores(
            session,
            sheet.section.id,
            [
                ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 80),
                ScoreEntry(sheet.reg_b.id, sheet.final.id, bad),
            ],
            [FinalGradeEntry(sheet.reg_a.id, 40.0, "F")],
        )

    assert len(exc.value.problems) == 1
    assert _score(session, sheet.reg_a.id, sheet.midterm.id) is None
    assert session.get(Registration, sheet.reg_a.id).final_letter_grade is None


def test_boundary_scores_are_accepted(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [
            ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 0),
            ScoreEntry(sheet.reg_a.id, sheet.final.id, 100),
        ],
        [],
    )
    assert _score(session, sheet.reg_a.id, sheet.midterm.id).score_achieved == 0
    assert _score(session, sheet.reg_a.id, sheet.final.id).score_achieved == 100


def test_assessment_from_another_section_is_refused(session, factory, sheet):
    other = factory.assessment(factory.section(), "Quiz", 10)

    with pytest.raises(AssessmentNotFound):
        save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, other.id, 5)], [])


def test_dropped_registration_is_not_on_the_sheet(session, sheet):
    enrollment.drop(session, sheet.bob.id, sheet.section.id)

    with pytest.raises(RegistrationNotFound):
        save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_b.id, sheet.midterm.id, 50)], [])
    with pytest.raises(RegistrationNotFound):
        save_scores(session, sheet.section.id, [], [FinalGradeEntry(sheet.reg_b.id, 50.0, "D")])


@pytest.mark.parametrize("pct, letter", [(75.0, "E"), (120.0, "A"), (-3.0, "F")])
def test_invalid_final_grade_is_refused(session, sheet, pct, letter):
    with pytest.raises(InvalidFinalGrade):
        save_scores(session, sheet.section.id, [], [FinalGradeEntry(sheet.reg_a.id, pct, letter)])


def test_caller_grade_is_trusted_by_default(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 10)],
        [FinalGradeEntry(sheet.reg_a.id, 95.0, "A")],
    )
    reg = session.get(Registration, sheet.reg_a.id)
    assert (reg.overall_percentage, reg.final_letter_grade) == (95.0, "A")


def test_rederive_recomputes_from_stored_scores(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [
            ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 80),
            ScoreEntry(sheet.reg_a.id, sheet.final.id, 70),
        ],
        [FinalGradeEntry(sheet.reg_a.id, 95.0, "A")],
        rederive=True,
    )
    reg = session.get(Registration, sheet.reg_a.id)
    assert reg.overall_percentage == pytest.approx(75.0)
    assert reg.final_letter_grade == "B"


def test_failed_commit_keeps_previous_sheet(session, sheet, monkeypatch):
    save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 60)], [])

    def boom():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session, "commit", boom)
    with pytest.raises(PersistenceFailure):
        save_scores(
            session,
            sheet.section.id,
            [
                ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 99),
                ScoreEntry(sheet.reg_b.id, sheet.midterm.id, 99),
            ],
            [FinalGradeEntry(sheet.reg_a.id, 49.5, "F")],
        )
    monkeypatch.undo()

    assert _score(session, sheet.reg_a.id, sheet.midterm.id).score_achieved == 60
    assert _score(session, sheet.reg_b.id, sheet.midterm.id) is None
    assert session.get(Registration, sheet.reg_a.id).final_letter_grade is None


def test_compute_final_grades(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [
            ScoreEntry(sheet.reg_a.id, sheet.midterm.id, 80),
            ScoreEntry(sheet.reg_a.id, sheet.final.id, 70),
            ScoreEntry(sheet.reg_b.id, sheet.midterm.id, 80),
        ],
        [],
    )

    grades = {g.registration_id: g for g in compute_final_grades(session, sheet.section.id)}

    assert grades[sheet.reg_a.id].overall_percentage == pytest.approx(75.0)
    assert grades[sheet.reg_a.id].final_letter_grade == "B"
    assert grades[sheet.reg_b.id].overall_percentage == pytest.approx(40.0)
    assert grades[sheet.reg_b.id].final_letter_grade == "F"


def test_complete_section_moves_graded_rows_and_keeps_counter(session, sheet):
    save_scores(session, sheet.section.id, [], [FinalGradeEntry(sheet.reg_a.id, 75.0, "B")])

    assert complete_section(session, sheet.section.id) == 1

    assert session.get(Registration, sheet.reg_a.id).status == COMPLETED
    assert session.get(Registration, sheet.reg_b.id).status == REGISTERED
    assert session.get(Section, sheet.section.id).current_enrollment == 1
    assert_counter_matches(session, sheet.section.id)

    # nothing left to complete
    assert complete_section(session, sheet.section.id) == 0


def test_completed_rows_stay_on_roster(session, sheet):
    save_scores(session, sheet.section.id, [], [FinalGradeEntry(sheet.reg_a.id, 75.0, "B")])
    complete_section(session, sheet.section.id)

    ids = [r.registration.id for r in section_roster(session, sheet.section.id)]
    assert sheet.reg_a.id in ids


def test_create_assessment_validates(session, sheet):
    quiz = create_assessment(session, sheet.section.id, "Quiz 1", 20, "Quiz")
    assert quiz.id is not None
    assert quiz.max_score == 20

    with pytest.raises(InvalidAssessment):
        create_assessment(session, sheet.section.id, "Quiz 2", 0)
    with pytest.raises(InvalidAssessment):
        create_assessment(session, sheet.section.id, "  ", 10)


def test_delete_assessment_removes_scores(session, sheet):
    save_scores(session, sheet.section.id, [ScoreEntry(sheet.reg_a.id, sheet.final.id, 70)], [])

    delete_assessment(session, sheet.final.id)

    assert session.get(Assessment, sheet.final.id) is None
    assert session.execute(select(AssessmentScore)).scalars().all() == []

    with pytest.raises(AssessmentNotFound):
        delete_assessment(session, sheet.final.id)


def test_reactivated_registration_starts_with_clean_grades(session, sheet):
    save_scores(
        session,
        sheet.section.id,
        [ScoreEntry(sheet.reg_b.id, sheet.midterm.id, 88)],
        [FinalGradeEntry(sheet.reg_b.id, 44.0, "F")],
    )
    enrollment.drop(session, sheet.bob.id, sheet.section.id)
    reg = enrollment.register(session, sheet.bob.id, sheet.section.id)

    assert reg.final_letter_grade is None
    assert reg.overall_percentage is None
    assert _score(session, sheet.reg_b.id, sheet.midterm.id).score_achieved is None
    assert session.get(Registration, sheet.reg_b.id).status != DROPPED
