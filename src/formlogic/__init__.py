"""
Conditional Questionnaire Logic Model (formlogic)

Builds questionnaires from the fields of an external table and decides,
answer by answer, which questions a respondent should see.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTTP or any table API
    - Authentication or user sessions
    - Storage of forms and submissions
    - Rendering

It consumes field records and emits plain question and answer records.
Fetching, storing and transporting them happens in external layers.
"""

__version__ = "0.1.0"
