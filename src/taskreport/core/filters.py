# taskreport/core/filters.py
"""
Filter Pipeline
---------------
Pure reductions over fetched Task and Comment records. Each function takes a
list of backend dicts and returns a new list; none of them touch the backend.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from taskreport.core.normalize import (
    as_flag,
    date_bounds,
    is_responsible_for,
    parse_timestamp,
    strip_html,
)

DEFAULT_TASK_STATUSES = ["Open", "Working", "Completed", "Overdue", "Pending Review"]
COMMENT_KIND = "comment"
RESPONSIBLE_FIELD = "custom_nguoi_phu_trach"


# ---------------------- TASK FILTERS ---------------------- #

def filter_responsible(tasks: Iterable[dict], identity: str, field: str = RESPONSIBLE_FIELD) -> List[dict]:
    """Keep tasks whose encoded responsible list contains `identity`."""
    return [t for t in tasks if is_responsible_for(t.get(field), identity)]


def filter_status(tasks: Iterable[dict], statuses: Optional[Iterable[str]]) -> List[dict]:
    """Keep tasks whose status is in `statuses` (case-insensitive). Empty or None keeps all."""
    wanted = {s.strip().lower() for s in (statuses or []) if s and s.strip()}
    if not wanted:
        return list(tasks)
    return [t for t in tasks if str(t.get("status") or "").lower() in wanted]


def filter_leaf_only(tasks: Iterable[dict]) -> List[dict]:
    return [t for t in tasks if not as_flag(t.get("is_group"))]


def filter_company(tasks: Iterable[dict], projects: Mapping[str, dict], company: str) -> List[dict]:
    """Keep tasks whose owning project belongs to `company`."""
    return [t for t in tasks if ((projects.get(t.get("project")) or {}).get("company") or "") == company]


# ---------------------- COMMENT FILTERS ---------------------- #

def filter_comment_kind(comments: Iterable[dict]) -> List[dict]:
    """Drop likes, edits, assignments and other non-"Comment" entries."""
    return [c for c in comments if str(c.get("comment_type") or "").lower() == COMMENT_KIND]


def filter_date_range(comments: Iterable[dict], from_date: Optional[str], to_date: Optional[str]) -> List[dict]:
    """
    Keep comments created on or after `from_date` and on or before the whole
    day of `to_date`. Comments with an unreadable timestamp are dropped when
    any bound is set.
    """
    lower, upper = date_bounds(from_date, to_date)
    if lower is None and upper is None:
        return list(comments)
    lower_dt = parse_timestamp(lower)
    upper_dt = parse_timestamp(upper)

    kept = []
    for c in comments:
        created = parse_timestamp(c.get("creation"))
        if created is None:
            continue
        if lower_dt is not None and created < lower_dt:
            continue
        if upper_dt is not None and created >= upper_dt:
            continue
        kept.append(c)
    return kept


def filter_keyword(comments: Iterable[dict], keyword: Optional[str]) -> List[dict]:
    """Case-insensitive substring match on the comment text with markup stripped."""
    if not keyword:
        return list(comments)
    kw = keyword.lower()
    return [c for c in comments if kw in strip_html(c.get("content")).lower()]


def filter_comment_owner(comments: Iterable[dict], owner: Optional[str]) -> List[dict]:
    if not owner:
        return list(comments)
    return [c for c in comments if c.get("owner") == owner]


def latest_per_task(comments: Iterable[dict]) -> List[dict]:
    """
    Keep the newest comment of each task. Timestamps compare as strings, the
    first one seen wins a tie.
    """
    latest: Dict[str, dict] = {}
    for c in comments:
        key = c.get("reference_name")
        current = latest.get(key)
        if current is None or str(c.get("creation") or "") > str(current.get("creation") or ""):
            latest[key] = c
    return list(latest.values())


def group_comments_by_task(comments: Iterable[dict]) -> Dict[str, List[dict]]:
    grouped: Dict[str, List[dict]] = {}
    for c in comments:
        grouped.setdefault(c.get("reference_name"), []).append(c)
    return grouped
