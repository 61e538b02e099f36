"""
Test the example feedback form.

Validates that the example builder produces the expected questions and
that visibility follows the respondent's answers.
"""

from formlogic.examples import build_example_feedback_form
from formlogic.model import FieldType
from formlogic.submission import FormSession


def test_example_form_structure():
    form = build_example_feedback_form()

    # The createdTime field is not offered as a question
    assert form.question_keys() == ["attended", "topics", "comments", "slides"]

    topics = form.get_question("topics")
    assert topics.type is FieldType.MULTI_SELECT
    assert topics.options == ["Python", "Data", "Ops"]
    assert topics.required

    assert form.get_question("slides").options == []


def test_example_form_walkthrough():
    session = FormSession(build_example_feedback_form())

    visible = [q.question_key for q in session.visible_questions()]
    assert visible == ["attended", "slides"]

    visible = [q.question_key for q in session.set_answer("attended", "no")]
    assert visible == ["attended", "slides"]

    # Stale topics answer still drives comments via contains
    session.set_answer("topics", "Python, Ops")
    assert session.answers["topics"] == ["Python", "Ops"]
    assert session.is_visible("comments")
    assert not session.is_visible("topics")

    result = session.submit()
    assert result.accepted
    assert result.payload["answers"]["topics"] == ["Python", "Ops"]


def test_example_form_requires_topics_when_attended():
    session = FormSession(build_example_feedback_form())
    session.set_answer("attended", "yes")
    result = session.submit()
    assert not result.accepted
    assert result.validation.missing_labels == ["Topics you liked"]
