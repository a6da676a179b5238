# taskreport/core/tree.py
"""
Task Tree Builder
-----------------
Rebuilds the parent/child hierarchy of one project's (already filtered) tasks
from their `parent_task` back-references.

A task is a root when it has no parent or when its parent is not part of the
same filtered set. Siblings are ordered by `lft` when every one of them has
it, otherwise by subject. Parent pointers are assumed acyclic (the tracker
enforces this); a cycle is not detected and its members never reach a root.
"""

from typing import Dict, List, Mapping, Optional

from taskreport.core.normalize import as_flag, collation_key, has_position, sanitize_html


def sort_siblings(tasks: List[dict]) -> List[dict]:
    """Order sibling tasks by `lft` if all of them carry one, else by subject."""
    if tasks and all(has_position(t) for t in tasks):
        return sorted(tasks, key=lambda t: t["lft"])
    return sorted(tasks, key=lambda t: collation_key(t.get("subject")))


def comment_node(comment: dict) -> dict:
    return {
        "comment_time": comment.get("creation"),
        "comment_owner": comment.get("owner"),
        "comment_html": sanitize_html(comment.get("content")),
    }


def task_node(task: dict, comments: Optional[List[dict]] = None) -> dict:
    ordered = sorted(comments or [], key=lambda c: str(c.get("creation") or ""), reverse=True)
    return {
        "task_id": task.get("name"),
        "task_subject": task.get("subject"),
        "task_status": task.get("status"),
        "task_progress": task.get("progress"),
        "task_priority": task.get("priority"),
        "is_group": as_flag(task.get("is_group")),
        "comments": [comment_node(c) for c in ordered],
        "children": [],
    }


def build_task_tree(
    tasks: List[dict],
    comments_by_task: Optional[Mapping[str, List[dict]]] = None,
    promote_parents: bool = False,
) -> List[dict]:
    """
    Build the ordered root nodes for one project's tasks.

    When `promote_parents` is set, a node that received children is marked
    `is_group` regardless of the backend flag.
    """
    comments_by_task = comments_by_task or {}
    by_name: Dict[str, dict] = {}
    for t in tasks:
        by_name.setdefault(t.get("name"), t)

    nodes = {name: task_node(t, comments_by_task.get(name)) for name, t in by_name.items()}

    children: Dict[str, List[dict]] = {}
    roots: List[dict] = []
    for name, t in by_name.items():
        parent = t.get("parent_task")
        if parent and parent != name and parent in by_name:
            children.setdefault(parent, []).append(t)
        else:
            roots.append(t)

    for parent, kids in children.items():
        node = nodes[parent]
        node["children"] = [nodes[k["name"]] for k in sort_siblings(kids)]
        if promote_parents and node["children"]:
            node["is_group"] = True

    return [nodes[r["name"]] for r in sort_siblings(roots)]


def count_nodes(nodes: List[dict]) -> int:
    return sum(1 + count_nodes(n.get("children") or []) for n in nodes)


def count_comments(nodes: List[dict]) -> int:
    return sum(len(n.get("comments") or []) + count_comments(n.get("children") or []) for n in nodes)
