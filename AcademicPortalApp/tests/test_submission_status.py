import datetime

from hypothesis import given, strategies as st

from AcademicPortalApp.domain.services.aggregation_service import derive_submission_status

scores = st.one_of(st.none(), st.integers(min_value=0, max_value=1000))
timestamps = st.datetimes(
    min_value=datetime.datetime(2000, 1, 1), max_value=datetime.datetime(2100, 1, 1),
)


def test_missing_submission_is_pending():
    assert derive_submission_status(None) == ("pending", None)


@given(score=scores)
def test_ungraded_submission_is_submitted(score):
    status, shown = derive_submission_status({"score": score, "graded_at": None})
    assert status == "submitted"
    assert shown == score


@given(score=scores, graded_at=timestamps)
def test_graded_submission_reports_score(score, graded_at):
    assert derive_submission_status({"score": score, "graded_at": graded_at}) == ("graded", score)
