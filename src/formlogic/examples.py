"""
Example form builder used by tests and the demo.

Builds a small feedback form from a four-field catalogue through the
FormBuilder, the same way an operator would: select fields, configure
them, attach conditions, build.
"""
from formlogic.authoring import FormBuilder
from formlogic.fields import parse_field_catalogue, supported_fields
from formlogic.model import Form
from formlogic.rules import LogicOperator


EXAMPLE_CATALOGUE = [
    {"id": "fldAttend", "name": "Did you attend?", "type": "singleSelect",
     "options": {"choices": [{"name": "yes"}, {"name": "no"}]}},
    {"id": "fldTopics", "name": "Topics you liked", "type": "multipleSelects",
     "options": {"choices": [{"name": "Python"}, {"name": "Data"}, {"name": "Ops"}]}},
    {"id": "fldComments", "name": "Comments", "type": "multilineText"},
    {"id": "fldSlides", "name": "Upload your slides", "type": "multipleAttachments"},
    {"id": "fldCreated", "name": "Created", "type": "createdTime"},
]


def build_example_feedback_form(form_id: str = "form_example") -> Form:
    fields = supported_fields(parse_field_catalogue(EXAMPLE_CATALOGUE))

    builder = FormBuilder(source_base_id="appExample")
    builder.select_table("tblFeedback", fields)

    for f in fields:
        builder.select_field(f)

    builder.set_question_key("fldAttend", "attended")
    builder.set_required("fldAttend", True)

    builder.set_question_key("fldTopics", "topics")
    builder.set_required("fldTopics", True)
    builder.enable_conditional_logic("fldTopics")
    builder.add_condition("fldTopics")
    builder.update_condition("fldTopics", 0, question_key="attended", value="yes")

    # Comments show if the respondent attended OR liked anything about Ops
    builder.set_question_key("fldComments", "comments")
    builder.enable_conditional_logic("fldComments")
    builder.set_logic("fldComments", LogicOperator.OR)
    builder.add_condition("fldComments")
    builder.update_condition("fldComments", 0, question_key="attended", value="yes")
    builder.add_condition("fldComments")
    builder.update_condition("fldComments", 1, question_key="topics", operator="contains", value="ops")

    builder.set_question_key("fldSlides", "slides")

    return builder.build(form_id=form_id)
