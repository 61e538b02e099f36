"""
Demo: Build the example feedback form, analyze its rules, and walk a
respondent through it.
"""

from formlogic.examples import build_example_feedback_form
from formlogic.analyzer import analyze_form
from formlogic.serialization import form_to_yaml
from formlogic.submission import FormSession


def print_report(report):
    """Pretty-print a FormReport."""
    print()
    print("=" * 70)
    print(f"FORM ANALYSIS REPORT: {report.form_id}")
    print("=" * 70)
    print()

    print("📊 BASIC METRICS")
    print(f"  Total Questions:       {report.total_questions}")
    print(f"  Required Questions:    {report.required_questions}")
    print(f"  Conditional Questions: {report.conditional_questions}")
    print(f"  Total Conditions:      {report.total_conditions}")
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Rules look clean!")
    print()


def walk_through(form):
    """Answer the form step by step and show what becomes visible."""
    session = FormSession(form)
    steps = [
        ("attended", "yes"),
        ("topics", "Data, Ops"),
        ("comments", "Great sessions"),
    ]

    print("🧭 RESPONDENT WALKTHROUGH")
    print(f"  Visible at start:      {[q.question_key for q in session.visible_questions()]}")
    for key, value in steps:
        visible = session.set_answer(key, value)
        print(f"  {key} = {value!r:<18} -> {[q.question_key for q in visible]}")

    result = session.submit()
    if result.accepted:
        print(f"  Submitted:             {result.payload}")
    else:
        print(f"  Rejected:              {result.validation.message}")
    print()


if __name__ == "__main__":
    form = build_example_feedback_form()

    print_report(analyze_form(form))
    walk_through(form)

    # Also save to YAML for inspection
    with open("example_form_output.yaml", "w") as f:
        f.write(form_to_yaml(form))
    print("✅ Form exported to example_form_output.yaml")
