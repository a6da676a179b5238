# taskreport/commands/reports.py
"""
Reports Command Module
----------------------
Generates the project -> task tree -> comment JSON reports:

  personal  tasks a given person is responsible for, with their comments
  progress  every task of the projects that received matching comments
"""

from typing import List, Optional

import typer

from taskreport.clients.client_frappe import FrappeClient
from taskreport.core.config import ConfigError, load_settings
from taskreport.core.filters import DEFAULT_TASK_STATUSES
from taskreport.core.normalize import parse_date, safe_token
from taskreport.core.notifier import error, info, summary
from taskreport.core.output_manager import render_summary, write_report
from taskreport.core.pipeline import ReportFilters, ReportPipeline, ScopeDiscovery

app = typer.Typer(help="Generate project/task/comment JSON reports.")

PERSONAL_PREFIX = "personal_report_by_responsible"
PROGRESS_PREFIX = "progress_tree"


# ---------------------- OPTION HELPERS ---------------------- #

def _validate_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        parse_date(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{value}' (expected YYYY-MM-DD).")
    return value.strip()


def _split_statuses(value: Optional[str]) -> List[str]:
    statuses = [s.strip() for s in (value or "").split(",") if s.strip()]
    return statuses or list(DEFAULT_TASK_STATUSES)


def _run_report(filters: ReportFilters, discovery: ScopeDiscovery, prefix: str, out_dir: Optional[str], token: Optional[str] = None):
    try:
        settings = load_settings()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=1)

    pipeline = ReportPipeline(FrappeClient(settings), filters, discovery)
    try:
        report = pipeline.run()
    except Exception as exc:
        error(f"Error building report: {exc}")
        raise typer.Exit(code=1)

    if not report:
        info(pipeline.empty_reason or "Nothing matched the current filters.")
        raise typer.Exit()

    try:
        path = write_report(report, out_dir or settings.out_dir, prefix, token)
    except OSError as exc:
        error(f"Could not write report: {exc}")
        raise typer.Exit(code=1)

    render_summary(report, title=f"{prefix} ({len(report)} project(s))")
    summary(f"Report written to {path}")


# ---------------------- PERSONAL REPORT ---------------------- #

@app.command("personal")
def personal_report(
    email: str = typer.Option(..., "--email", "-e", help="Responsible person's email (required)."),
    from_date: Optional[str] = typer.Option(None, "--from", "--from-date", callback=_validate_date, help="Comments created on or after this date (YYYY-MM-DD)."),
    to_date: Optional[str] = typer.Option(None, "--to", "--to-date", callback=_validate_date, help="Comments created on or before this date (YYYY-MM-DD)."),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Restrict to one project ID."),
    company: Optional[str] = typer.Option(None, "--company", "-c", help="Restrict to projects of a company."),
    status: Optional[str] = typer.Option(None, "--status", "--task-status", "-s", help="Comma-separated task statuses."),
    keyword: Optional[str] = typer.Option(None, "--kw", "--keyword", "-k", help="Keep comments containing this text."),
    owner: Optional[str] = typer.Option(None, "--owner", "--comment-owner", help="Keep comments written by this user."),
    leaf: bool = typer.Option(False, "--leaf", help="Only leaf (non-group) tasks."),
    latest: bool = typer.Option(False, "--latest", help="Only the newest comment of each task."),
    out_dir: Optional[str] = typer.Option(None, "--out-dir", "-o", help="Output directory (default: TASKREPORT_OUT_DIR or ./out)."),
):
    """Export the task tree of everything EMAIL is responsible for."""
    email = email.strip()
    if not email:
        error("--email must not be empty.")
        raise typer.Exit(code=1)

    filters = ReportFilters(
        email=email,
        project=project,
        company=company,
        from_date=from_date,
        to_date=to_date,
        task_status=_split_statuses(status),
        keyword=keyword,
        comment_owner=owner,
        leaf_only=leaf,
        latest_only=latest,
    )
    info(f"Building personal report for {email}...")
    _run_report(filters, ScopeDiscovery.TASKS_FIRST, PERSONAL_PREFIX, out_dir, token=safe_token(email))


# ---------------------- PROGRESS REPORT ---------------------- #

@app.command("progress")
def progress_report(
    from_date: Optional[str] = typer.Option(None, "--from", "--from-date", callback=_validate_date, help="Comments created on or after this date (YYYY-MM-DD)."),
    to_date: Optional[str] = typer.Option(None, "--to", "--to-date", callback=_validate_date, help="Comments created on or before this date (YYYY-MM-DD)."),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Restrict to one project ID."),
    company: Optional[str] = typer.Option(None, "--company", "-c", help="Restrict to projects of a company."),
    owner: Optional[str] = typer.Option(None, "--owner", "--comment-owner", help="Keep comments written by this user."),
    status: Optional[str] = typer.Option(None, "--status", "--task-status", "-s", help="Comma-separated task statuses."),
    keyword: Optional[str] = typer.Option(None, "--kw", "--keyword", "-k", help="Keep comments containing this text."),
    leaf: bool = typer.Option(False, "--leaf", help="Only leaf (non-group) tasks."),
    latest: bool = typer.Option(False, "--latest", help="Only the newest comment of each task."),
    out_dir: Optional[str] = typer.Option(None, "--out-dir", "-o", help="Output directory (default: TASKREPORT_OUT_DIR or ./out)."),
):
    """Export the task trees of projects with matching comment activity."""
    filters = ReportFilters(
        project=project,
        company=company,
        from_date=from_date,
        to_date=to_date,
        task_status=_split_statuses(status),
        keyword=keyword,
        comment_owner=owner,
        leaf_only=leaf,
        latest_only=latest,
    )
    info("Building progress report...")
    _run_report(filters, ScopeDiscovery.COMMENTS_FIRST, PROGRESS_PREFIX, out_dir)
