# taskreport/schemas/doctypes_schema.py
"""
DocType Schemas
---------------
Field projections requested from the backend for each document type, and the
column headers used for the console summary of a generated report.

Columns shown in the summary:
  Project | Name | Company | Status | % Complete | Tasks | Comments
"""

from typing import Dict, List


class DocTypeSchema:
    """Backend projection for one document type."""

    def __init__(self, doctype: str, fields: List[str]):
        self.doctype = doctype
        self.fields: List[str] = list(fields)

    def all_fields(self, extra: List[str] = None) -> List[str]:
        """Return the projection, optionally with extra fields appended once."""
        fields = list(self.fields)
        for f in extra or []:
            if f not in fields:
                fields.append(f)
        return fields


class ReportSummarySchema:
    def __init__(self):
        self.display_fields: List[str] = [
            "project_id",
            "project_name",
            "project_company",
            "project_status",
            "project_percent",
            "task_count",
            "comment_count",
        ]

        self.display_headers: Dict[str, str] = {
            "project_id": "Project",
            "project_name": "Name",
            "project_company": "Company",
            "project_status": "Status",
            "project_percent": "% Complete",
            "task_count": "Tasks",
            "comment_count": "Comments",
        }

    def display_name(self, field: str) -> str:
        return self.display_headers.get(field, field)

    def all_display_fields(self) -> List[str]:
        return list(self.display_fields)


project_schema = DocTypeSchema(
    "Project",
    ["name", "project_name", "status", "company", "percent_complete"],
)

task_schema = DocTypeSchema(
    "Task",
    ["name", "subject", "status", "progress", "priority", "is_group", "project", "parent_task", "lft", "rgt"],
)

comment_schema = DocTypeSchema(
    "Comment",
    ["name", "creation", "owner", "comment_type", "content", "reference_name"],
)

summary_schema = ReportSummarySchema()
