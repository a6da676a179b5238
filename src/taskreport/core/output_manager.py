# taskreport/core/output_manager.py
"""
Output Manager
---------------
Centralizes report output:
 - JSON export of the project -> task tree report to a timestamped file
 - Rich summary table printed after a successful export
"""

import json
import os
import time
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

import taskreport.core.logger as logger
from taskreport.core.notifier import success
from taskreport.core.tree import count_comments, count_nodes
from taskreport.schemas.doctypes_schema import summary_schema

console = Console()


def report_filename(prefix: str, token: Optional[str] = None, stamp: Optional[int] = None) -> str:
    """`<prefix>[_<token>]_<epoch-millis>.json`"""
    stamp = stamp if stamp is not None else int(time.time() * 1000)
    parts = [prefix]
    if token:
        parts.append(token)
    parts.append(str(stamp))
    return "_".join(parts) + ".json"


def write_report(report: List[Dict[str, Any]], out_dir: str, prefix: str, token: Optional[str] = None) -> str:
    """Write `report` as indented UTF-8 JSON under `out_dir` (created if absent). Returns the path."""
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.abspath(os.path.join(out_dir, report_filename(prefix, token)))
    data = json.dumps(report, indent=2, ensure_ascii=False)
    with open(path, "w", encoding="utf-8") as f:
        f.write(data)
    success(f"JSON report exported to {path}")
    return path


def summarize(report: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    rows = []
    for p in report:
        tasks = p.get("tasks") or []
        rows.append({
            "project_id": p.get("project_id") or "",
            "project_name": p.get("project_name") or "",
            "project_company": p.get("project_company") or "",
            "project_status": p.get("project_status") or "",
            "project_percent": "" if p.get("project_percent") is None else p.get("project_percent"),
            "task_count": count_nodes(tasks),
            "comment_count": count_comments(tasks),
        })
    return rows


def render_summary(report: List[Dict[str, Any]], title: Optional[str] = None):
    """Render one row per project with its task and comment counts."""
    if logger.QUIET or not report:
        return

    fields = summary_schema.all_display_fields()
    numeric = {"project_percent", "task_count", "comment_count"}
    table = Table(
        title=title or "Report",
        show_header=True,
        header_style="bold cyan",
        row_styles=["none", "dim"],
    )
    for key in fields:
        table.add_column(
            summary_schema.display_name(key),
            overflow="ellipsis",
            max_width=40,
            justify="right" if key in numeric else "left",
        )

    for row in summarize(report):
        table.add_row(*(str(row.get(k, "")) for k in fields))

    console.print(table)
