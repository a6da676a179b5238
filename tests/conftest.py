import pytest

from taskreport.core.config import Settings


def _matches(doc, flt):
    field, op, value = flt
    actual = doc.get(field)
    if op == "=":
        return actual == value
    if op == "in":
        return actual in value
    if op == "like":
        needle = value.strip("%").lower()
        return needle in str(actual or "").lower()
    if op == ">=":
        return actual is not None and str(actual) >= value
    if op == "<":
        return actual is not None and str(actual) < value
    raise AssertionError(f"unsupported operator {op}")


class FakeDocumentSource:
    """In-memory stand-in for FrappeClient.get_list."""

    def __init__(self, docs):
        self.docs = docs
        self.calls = []

    def get_list(self, doctype, fields, filters=None, order_by=None, limit=None):
        self.calls.append({"doctype": doctype, "filters": filters or [], "limit": limit})
        rows = [d for d in self.docs.get(doctype, []) if all(_matches(d, f) for f in filters or [])]
        if order_by:
            rows = sorted(rows, key=lambda r: str(r.get(order_by["field"]) or ""), reverse=order_by.get("order") == "desc")
        if limit is not None:
            rows = rows[:limit]
        return [{k: r.get(k) for k in fields} for r in rows]


PROJECTS = [
    {"name": "P1", "project_name": "Beta", "status": "Open", "company": "Công ty F", "percent_complete": 40.0},
    {"name": "P2", "project_name": "alpha", "status": "Open", "company": "Công ty F", "percent_complete": None},
    {"name": "P3", "project_name": "Gamma", "status": "Completed", "company": "Other", "percent_complete": 100.0},
]

TASKS = [
    {"name": "T1", "subject": "Root", "status": "Open", "progress": 10, "priority": "High", "is_group": 1,
     "project": "P1", "parent_task": None, "lft": 1, "rgt": 6, "custom_nguoi_phu_trach": '["a@x.com"]'},
    {"name": "T2", "subject": "Ship", "status": "Working", "progress": 50, "priority": "Medium", "is_group": 0,
     "project": "P1", "parent_task": "T1", "lft": 2, "rgt": 3, "custom_nguoi_phu_trach": '["A@X.COM", "b@x.com"]'},
    {"name": "T3", "subject": "Pack", "status": "Completed", "progress": 100, "priority": "Low", "is_group": 0,
     "project": "P1", "parent_task": "T1", "lft": 4, "rgt": 5, "custom_nguoi_phu_trach": '["b@x.com"]'},
    {"name": "T4", "subject": "Zeta", "status": "Open", "progress": 0, "priority": "Low", "is_group": 0,
     "project": "P2", "parent_task": None, "lft": None, "rgt": None, "custom_nguoi_phu_trach": '["a@x.com"]'},
    {"name": "T5", "subject": "alpha task", "status": "Open", "progress": 0, "priority": "Low", "is_group": 0,
     "project": "P2", "parent_task": "T9", "lft": None, "rgt": None, "custom_nguoi_phu_trach": '["aa@x.com"]'},
    {"name": "T6", "subject": "Old", "status": "Cancelled", "progress": 0, "priority": "Low", "is_group": 0,
     "project": "P3", "parent_task": None, "lft": 1, "rgt": 2, "custom_nguoi_phu_trach": '["a@x.com"]'},
    {"name": "T7", "subject": "child", "status": "Open", "progress": 0, "priority": "Low", "is_group": 0,
     "project": "P2", "parent_task": "T4", "lft": None, "rgt": None, "custom_nguoi_phu_trach": "not json"},
    {"name": "T8", "subject": "Another child", "status": "Open", "progress": 0, "priority": "Low", "is_group": 0,
     "project": "P2", "parent_task": "T4", "lft": None, "rgt": None, "custom_nguoi_phu_trach": ["a@x.com"]},
]


def _comment(name, task, creation, owner="a@x.com", content="note", comment_type="Comment"):
    return {
        "name": name,
        "creation": creation,
        "owner": owner,
        "comment_type": comment_type,
        "content": content,
        "reference_doctype": "Task",
        "reference_name": task,
    }


COMMENTS = [
    _comment("C1", "T2", "2025-08-01 10:00:00.000000", content="<p>Shipped</p>"),
    _comment("C2", "T2", "2025-08-03 09:00:00.000000", owner="b@x.com", content="<b>mẫu</b> done"),
    _comment("C3", "T2", "2025-08-02 08:30:00.000000", content="halfway"),
    _comment("C4", "T4", "2025-08-05 12:00:00.000000", comment_type="Like"),
    _comment("C5", "T3", "2025-08-08 23:59:59.000000", content="<script>alert(1)</script>late"),
    _comment("C6", "T3", "2025-08-09 00:00:00.000000", content="too late"),
    _comment("C7", "T6", "2025-08-02 11:00:00.000000", content="other company"),
]


@pytest.fixture
def source():
    return FakeDocumentSource({
        "Project": [dict(p) for p in PROJECTS],
        "Task": [dict(t) for t in TASKS],
        "Comment": [dict(c) for c in COMMENTS],
    })


@pytest.fixture
def settings(tmp_path):
    return Settings(
        base_url="https://erp.example.com",
        api_key="key",
        api_secret="secret",
        page_size=2,
        out_dir=str(tmp_path / "out"),
    )
