# taskreport/core/pipeline.py
"""
Report Pipeline
---------------
Fetch -> filter -> join -> sort for both report variants:

 - TASKS_FIRST (personal report): select the tasks a person is responsible
   for, then collect the comments written on those tasks.
 - COMMENTS_FIRST (progress report): select comments first; the projects of
   the commented tasks become the scope, and every task of those projects is
   reported (with or without comments).

Both variants share the project scoping, task filters, comment filters, tree
building and project assembly; only the discovery order differs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from taskreport.clients.client_frappe import chunk
from taskreport.core import filters as f
from taskreport.core.logger import log
from taskreport.core.normalize import collation_key, date_bounds
from taskreport.core.tree import build_task_tree
from taskreport.schemas.doctypes_schema import comment_schema, project_schema, task_schema

PROJECT_CHUNK = 50
NAME_CHUNK = 200
COMMENT_TASK_CHUNK = 400


class ScopeDiscovery(str, Enum):
    TASKS_FIRST = "tasks_first"
    COMMENTS_FIRST = "comments_first"


@dataclass
class ReportFilters:
    email: Optional[str] = None
    project: Optional[str] = None
    company: Optional[str] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    task_status: List[str] = field(default_factory=lambda: list(f.DEFAULT_TASK_STATUSES))
    keyword: Optional[str] = None
    comment_owner: Optional[str] = None
    leaf_only: bool = False
    latest_only: bool = False


def assemble_report(
    tasks: List[dict],
    projects: Dict[str, dict],
    comments_by_task: Dict[str, List[dict]],
    promote_parents: bool = False,
    responsible_email: Optional[str] = None,
) -> List[dict]:
    """Group tasks under their projects, sorted by project name. Unknown projects are dropped."""
    tasks_by_project: Dict[str, List[dict]] = {}
    for t in tasks:
        tasks_by_project.setdefault(t.get("project"), []).append(t)

    project_ids = [pid for pid in tasks_by_project if pid in projects]
    project_ids.sort(key=lambda pid: collation_key(projects[pid].get("project_name")))

    report = []
    for pid in project_ids:
        p = projects[pid]
        entry = {
            "project_id": p.get("name"),
            "project_name": p.get("project_name"),
            "project_status": p.get("status"),
            "project_company": p.get("company"),
            "project_percent": p.get("percent_complete"),
        }
        if responsible_email is not None:
            entry["responsible_email"] = responsible_email
        entry["tasks"] = build_task_tree(tasks_by_project[pid], comments_by_task, promote_parents=promote_parents)
        report.append(entry)
    return report


class ReportPipeline:
    def __init__(self, client, filters: ReportFilters, discovery: ScopeDiscovery, promote_parents: Optional[bool] = None):
        if discovery == ScopeDiscovery.TASKS_FIRST and not (filters.email or "").strip():
            raise ValueError("The personal report requires a responsible email")
        self.client = client
        self.filters = filters
        self.discovery = discovery
        # Only the personal report marks nodes with children as groups.
        if promote_parents is None:
            promote_parents = discovery == ScopeDiscovery.TASKS_FIRST
        self.promote_parents = promote_parents
        self.projects: Dict[str, dict] = {}
        self.empty_reason: Optional[str] = None

    # ---------------------- ENTRY POINT ---------------------- #

    def run(self) -> List[dict]:
        """Build the report. An empty list means nothing matched; see `empty_reason`."""
        self.empty_reason = None
        if self.discovery == ScopeDiscovery.TASKS_FIRST:
            return self._run_tasks_first()
        return self._run_comments_first()

    def _run_tasks_first(self) -> List[dict]:
        email = self.filters.email.strip()
        scope = self.explicit_scope()
        if scope is not None and not scope:
            return self._nothing("No projects match the requested project/company.")

        tasks = f.filter_responsible(self.fetch_responsible_tasks(scope), email)
        tasks = self.apply_task_filters(tasks)
        if not tasks:
            return self._nothing(f"No tasks that {email} is responsible for match the current filters.")

        self.load_projects({t.get("project") for t in tasks if t.get("project")})
        if self.filters.company:
            tasks = f.filter_company(tasks, self.projects, self.filters.company)
            if not tasks:
                return self._nothing(f"No tasks that {email} is responsible for belong to {self.filters.company}.")

        comments = self.fetch_task_comments(sorted({t["name"] for t in tasks}))
        comments = self.apply_comment_filters(comments)
        comments = self.refine_comments(comments)

        report = self._assemble(tasks, comments, responsible_email=email)
        if not report:
            return self._nothing(f"None of the projects of {email}'s tasks could be resolved.")
        return report

    def _run_comments_first(self) -> List[dict]:
        comments = self.apply_comment_filters(self.fetch_comments())
        commented = self.fetch_tasks_by_name(sorted({c["reference_name"] for c in comments if c.get("reference_name")}))
        comments = [c for c in comments if c.get("reference_name") in commented]

        scope = self.explicit_scope()
        if scope is None:
            scope = {commented[c["reference_name"]].get("project") for c in comments}
            scope.discard(None)
            scope.discard("")
            self.load_projects(scope)
        if not scope:
            return self._nothing("No target project (no matching comments and no --project/--company given).")

        comments = [c for c in comments if commented[c["reference_name"]].get("project") in scope]

        tasks = self.apply_task_filters(self.fetch_project_tasks(scope))
        comments = self.refine_comments(comments)

        report = self._assemble(tasks, comments)
        if not report:
            return self._nothing("No tasks match the current filters in the target projects.")
        return report

    def _assemble(self, tasks: List[dict], comments: List[dict], responsible_email: Optional[str] = None) -> List[dict]:
        log(f"Assembling {len(tasks)} task(s) and {len(comments)} comment(s)")
        return assemble_report(
            tasks,
            self.projects,
            f.group_comments_by_task(comments),
            promote_parents=self.promote_parents,
            responsible_email=responsible_email,
        )

    def _nothing(self, reason: str) -> List[dict]:
        self.empty_reason = reason
        return []

    # ---------------------- SCOPE ---------------------- #

    def explicit_scope(self) -> Optional[Set[str]]:
        """
        Project ids named by --project and/or --company, or None when neither
        was given. With --company, projects of other companies are dropped.
        """
        if not self.filters.project and not self.filters.company:
            return None

        scope: Set[str] = set()
        if self.filters.company:
            rows = self.client.get_list(
                project_schema.doctype,
                fields=project_schema.all_fields(),
                filters=[["company", "=", self.filters.company]],
            )
            for p in rows:
                self.projects[p["name"]] = p
                scope.add(p["name"])
            log(f"Company {self.filters.company}: {len(rows)} project(s)")

        if self.filters.project:
            self.load_projects({self.filters.project})
            if not self.filters.company:
                scope.add(self.filters.project)
            elif (self.projects.get(self.filters.project) or {}).get("company") == self.filters.company:
                scope.add(self.filters.project)
        return scope

    def load_projects(self, project_ids: Set[str]):
        """Fetch projects not yet in the lookup map."""
        missing = sorted(pid for pid in project_ids if pid and pid not in self.projects)
        for part in chunk(missing, NAME_CHUNK):
            rows = self.client.get_list(
                project_schema.doctype,
                fields=project_schema.all_fields(),
                filters=[["name", "in", part]],
                limit=len(part),
            )
            for p in rows:
                self.projects[p["name"]] = p

    # ---------------------- TASKS ---------------------- #

    def fetch_responsible_tasks(self, scope: Optional[Set[str]]) -> List[dict]:
        # LIKE is only a coarse pre-filter; filter_responsible re-checks membership.
        like = [f.RESPONSIBLE_FIELD, "like", f"%{self.filters.email.strip()}%"]
        fields = task_schema.all_fields([f.RESPONSIBLE_FIELD])
        if scope is None:
            return self.client.get_list(task_schema.doctype, fields=fields, filters=[like])

        tasks: List[dict] = []
        for part in chunk(sorted(scope), PROJECT_CHUNK):
            tasks.extend(
                self.client.get_list(task_schema.doctype, fields=fields, filters=[["project", "in", part], like])
            )
        log(f"Received {len(tasks)} candidate task(s)")
        return tasks

    def fetch_tasks_by_name(self, names: List[str]) -> Dict[str, dict]:
        tasks: Dict[str, dict] = {}
        for part in chunk(names, NAME_CHUNK):
            rows = self.client.get_list(
                task_schema.doctype,
                fields=task_schema.all_fields(),
                filters=[["name", "in", part]],
                limit=len(part),
            )
            for t in rows:
                tasks[t["name"]] = t
        return tasks

    def fetch_project_tasks(self, scope: Set[str]) -> List[dict]:
        tasks: List[dict] = []
        for part in chunk(sorted(scope), PROJECT_CHUNK):
            tasks.extend(
                self.client.get_list(
                    task_schema.doctype,
                    fields=task_schema.all_fields(),
                    filters=[["project", "in", part]],
                )
            )
        log(f"Received {len(tasks)} task(s) from {len(scope)} project(s)")
        return tasks

    def apply_task_filters(self, tasks: List[dict]) -> List[dict]:
        tasks = f.filter_status(tasks, self.filters.task_status)
        if self.filters.leaf_only:
            tasks = f.filter_leaf_only(tasks)
        return tasks

    # ---------------------- COMMENTS ---------------------- #

    def comment_filters(self) -> List[list]:
        lower, upper = date_bounds(self.filters.from_date, self.filters.to_date)
        filters = [
            ["reference_doctype", "=", "Task"],
            ["comment_type", "=", "Comment"],
        ]
        if lower:
            filters.append(["creation", ">=", lower])
        if upper:
            filters.append(["creation", "<", upper])
        if self.filters.comment_owner:
            filters.append(["owner", "=", self.filters.comment_owner])
        return filters

    def fetch_comments(self) -> List[dict]:
        comments = self.client.get_list(
            comment_schema.doctype,
            fields=comment_schema.all_fields(),
            filters=self.comment_filters(),
            order_by={"field": "creation", "order": "asc"},
        )
        log(f"Received {len(comments)} comment(s)")
        return comments

    def fetch_task_comments(self, task_names: List[str]) -> List[dict]:
        comments: List[dict] = []
        for part in chunk(task_names, COMMENT_TASK_CHUNK):
            comments.extend(
                self.client.get_list(
                    comment_schema.doctype,
                    fields=comment_schema.all_fields(),
                    filters=self.comment_filters() + [["reference_name", "in", part]],
                    order_by={"field": "creation", "order": "asc"},
                )
            )
        log(f"Received {len(comments)} comment(s) on {len(task_names)} task(s)")
        return comments

    def apply_comment_filters(self, comments: List[dict]) -> List[dict]:
        comments = f.filter_comment_kind(comments)
        comments = f.filter_date_range(comments, self.filters.from_date, self.filters.to_date)
        return f.filter_comment_owner(comments, self.filters.comment_owner)

    def refine_comments(self, comments: List[dict]) -> List[dict]:
        comments = f.filter_keyword(comments, self.filters.keyword)
        if self.filters.latest_only:
            comments = f.latest_per_task(comments)
        return comments
