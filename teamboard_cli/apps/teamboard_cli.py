from __future__ import annotations

import argparse
import contextlib
import io
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import typer
from rich.console import Console

from .. import __version__
from ..api_client import TeamboardApi
from ..cli_shared import DEFAULT_API_BASE_URL
from ..cli_shared import DEFAULT_SESSION_FILE
from ..cli_shared import TEAMBOARD_API_BASE_URL
from ..cli_shared import TEAMBOARD_CLIENT_ID
from ..cli_shared import TEAMBOARD_ID_TOKEN
from ..cli_shared import TEAMBOARD_SESSION_FILE
from ..cli_shared import AdmissionBlocked
from ..cli_shared import GlobalOpts
from ..cli_shared import OpError
from ..cli_shared import UsageError
from ..cli_shared import _env_or_none
from ..cli_shared import _eprint
from ..cli_shared import _print_json
from ..cli_shared import _require_str
from ..dashboard import DashboardSession
from ..dashboard import render_admin
from ..dashboard import render_notice_detail
from ..dashboard import render_stats
from ..dashboard import resolve_id
from ..local_server import DEFAULT_HOST
from ..local_server import DEFAULT_PORT
from ..session import AdmissionState
from ..session import Identity
from ..session import SessionContext
from ..session import admission_state
from ..session import refresh_status
from ..session import render_status_screen
from ..session import require_admin
from ..session import require_approved
from ..session import sign_in
from ..task_views import compute_stats
from ..views import VIEW_NAMES
from ..views import parse_view
from ..views import view_selector

try:
    from dotenv import load_dotenv  # type: ignore
except Exception:  # pragma: no cover - exercised only when deps are missing
    load_dotenv = None


EXIT_ADMISSION_BLOCKED = 3

_BROWSE_QUIT = {"q", "quit", "exit"}


def _bootstrap_env() -> None:
    if load_dotenv is None:
        raise UsageError("missing dependency: python-dotenv (pip install -e .)")
    # Use python-dotenv package defaults: discover and load .env without
    # overriding already-exported process environment values.
    load_dotenv()


def _api(g: GlobalOpts) -> TeamboardApi:
    return TeamboardApi(g.api_base_url)


def _session(g: GlobalOpts) -> SessionContext:
    ctx = SessionContext(Path(g.session_file))
    ctx.load()
    return ctx


def _approved(g: GlobalOpts) -> tuple[SessionContext, Identity]:
    ctx = _session(g)
    return ctx, require_approved(ctx)


def _dashboard(g: GlobalOpts) -> DashboardSession:
    _ctx, identity = _approved(g)
    return DashboardSession(_api(g), identity)


def _write(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _identity_lines(identity: Identity) -> str:
    return (
        f"name:   {identity.name}\n"
        f"email:  {identity.email}\n"
        f"role:   {identity.role}\n"
        f"status: {identity.status}\n"
        f"id:     {identity.user_id or '-'}\n"
    )


def _task_fields(args: argparse.Namespace) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for attr, key in (
        ("assignee", "assignee"),
        ("title", "title"),
        ("submission_target", "submissionTarget"),
        ("notes", "notes"),
        ("urgent", "urgent"),
        ("completed", "completed"),
    ):
        val = getattr(args, attr, None)
        if val is not None:
            fields[key] = val
    if getattr(args, "clear_due", False):
        if getattr(args, "due", None):
            raise UsageError("--due and --clear-due are mutually exclusive")
        fields["dueDate"] = None
    elif getattr(args, "due", None):
        fields["dueDate"] = str(args.due).strip()
    return fields


def _after_mutation(g: GlobalOpts, session: DashboardSession, out: dict[str, Any], message: str) -> int:
    if g.json_output:
        _print_json(out, pretty=True)
        return 0
    _write(message)
    _write(render_stats(compute_stats(session.tasks or [], session.today)))
    return 0


# session commands


def cmd_signin(args: argparse.Namespace, g: GlobalOpts) -> int:
    token = _require_str(
        args.id_token or _env_or_none(TEAMBOARD_ID_TOKEN),
        "identity token",
        hint=f"pass --id-token or set {TEAMBOARD_ID_TOKEN}",
    )
    ctx = SessionContext(Path(g.session_file))
    identity = sign_in(_api(g), ctx, token, client_id=g.client_id)
    if g.json_output:
        _print_json({"identity": asdict(identity)}, pretty=True)
        return 0
    _write(f"signed in as {identity.name} <{identity.email}>")
    if admission_state(identity) is not AdmissionState.APPROVED:
        _write(render_status_screen(identity))
    return 0


def cmd_signout(args: argparse.Namespace, g: GlobalOpts) -> int:
    removed = SessionContext(Path(g.session_file)).clear()
    _write("signed out" if removed else "not signed in")
    return 0


def cmd_whoami(args: argparse.Namespace, g: GlobalOpts) -> int:
    ctx = _session(g)
    if bool(getattr(args, "refresh", False)):
        identity = refresh_status(_api(g), ctx)
    else:
        identity = ctx.identity
        if identity is None:
            raise UsageError("not signed in (run: teamboard signin --id-token <token>)")
    if g.json_output:
        _print_json(asdict(identity), pretty=True)
        return 0
    _write(_identity_lines(identity))
    return 0


# views


def cmd_show(args: argparse.Namespace, g: GlobalOpts) -> int:
    view = parse_view(args.view)
    session = _dashboard(g)
    _write(session.render(view))
    return 0


def _browse_step(session: DashboardSession, line: str, current: Any) -> tuple[Any, str]:
    words = line.split()
    verb = words[0].lower() if words else ""
    if not verb:
        return current, session.render(current)
    if verb == "refresh":
        session.refresh()
        return current, session.render(current)
    if verb in ("done", "undo") and len(words) == 2:
        session.complete_task(words[1], completed=verb == "done")
        return current, session.render(current)
    if verb == "delete" and len(words) == 2:
        session.delete_task(words[1])
        return current, session.render(current)
    view = parse_view(line)
    return view, session.render(view)


def cmd_browse(args: argparse.Namespace, g: GlobalOpts) -> int:
    session = _dashboard(g)
    current = parse_view(getattr(args, "view", None))
    _write(session.render(current))
    hint = "view (" + ", ".join(VIEW_NAMES) + "), refresh, done|undo|delete <task-id>, quit"
    while True:
        try:
            line = str(typer.prompt(f"[{view_selector(current)}]", default="", show_default=False)).strip()
        except click.exceptions.Abort:
            break
        if line.lower() in _BROWSE_QUIT:
            break
        if line in ("?", "help"):
            _write(hint)
            continue
        try:
            current, screen = _browse_step(session, line, current)
        except (UsageError, OpError) as e:
            # Errors stay on the current screen.
            _write(f"error: {e}")
            continue
        _write(screen)
    return 0


# tasks


def cmd_task_add(args: argparse.Namespace, g: GlobalOpts) -> int:
    fields = _task_fields(args)
    _require_str(fields.get("title"), "title", hint="pass --title")
    session = _dashboard(g)
    out = session.create_task(fields)
    task_id = str((out.get("task") or {}).get("id") or out.get("id") or "")
    return _after_mutation(g, session, out, f"created task {task_id}")


def cmd_task_edit(args: argparse.Namespace, g: GlobalOpts) -> int:
    session = _dashboard(g)
    out = session.edit_task(args.task_id, _task_fields(args))
    return _after_mutation(g, session, out, f"updated task {(out.get('task') or {}).get('id', args.task_id)}")


def cmd_task_complete(args: argparse.Namespace, g: GlobalOpts) -> int:
    session = _dashboard(g)
    completed = not bool(getattr(args, "undo", False))
    out = session.complete_task(args.task_id, completed=completed)
    state = "completed" if completed else "reopened"
    return _after_mutation(g, session, out, f"{state} task {(out.get('task') or {}).get('id', args.task_id)}")


def cmd_task_delete(args: argparse.Namespace, g: GlobalOpts) -> int:
    session = _dashboard(g)
    out = session.delete_task(args.task_id)
    return _after_mutation(g, session, out, f"deleted task {out.get('id', args.task_id)}")


# notices and comments


def _resolve_notice_id(api: TeamboardApi, given: str) -> str:
    return resolve_id((n.id for n in api.list_notices()), given, label="notice")


def cmd_notices_list(args: argparse.Namespace, g: GlobalOpts) -> int:
    session = _dashboard(g)
    _write(session.render(parse_view("notices")))
    return 0


def cmd_notices_show(args: argparse.Namespace, g: GlobalOpts) -> int:
    _approved(g)
    api = _api(g)
    notices = api.list_notices()
    notice_id = resolve_id((n.id for n in notices), args.notice_id, label="notice")
    notice = next(n for n in notices if n.id == notice_id)
    _write(render_notice_detail(notice, api.list_comments(notice_id)))
    return 0


def cmd_notices_add(args: argparse.Namespace, g: GlobalOpts) -> int:
    _ctx, identity = _approved(g)
    title = _require_str(args.title, "title", hint="pass --title")
    fields = {
        "title": title,
        "body": args.body or "",
        "author": args.author if args.author is not None else identity.name,
        "importance": "important" if args.important else "general",
    }
    notice = _api(g).create_notice(fields)
    if g.json_output:
        _print_json(asdict(notice), pretty=True)
        return 0
    _write(f"created notice {notice.id}")
    return 0


def cmd_notices_edit(args: argparse.Namespace, g: GlobalOpts) -> int:
    _approved(g)
    fields: dict[str, Any] = {}
    if args.title is not None:
        fields["title"] = args.title
    if args.body is not None:
        fields["body"] = args.body
    if args.important is not None:
        fields["importance"] = "important" if args.important else "general"
    if not fields:
        raise UsageError("nothing to change (pass --title, --body or --important/--general)")
    api = _api(g)
    notice = api.update_notice(_resolve_notice_id(api, args.notice_id), fields)
    _write(f"updated notice {notice.id}")
    return 0


def cmd_notices_delete(args: argparse.Namespace, g: GlobalOpts) -> int:
    _approved(g)
    api = _api(g)
    notice_id = _resolve_notice_id(api, args.notice_id)
    api.delete_notice(notice_id)
    _write(f"deleted notice {notice_id}")
    return 0


def cmd_comments_add(args: argparse.Namespace, g: GlobalOpts) -> int:
    _ctx, identity = _approved(g)
    body = _require_str(args.body, "comment body", hint="pass --body")
    api = _api(g)
    notice_id = _resolve_notice_id(api, args.notice_id)
    comment = api.create_comment(
        notice_id=notice_id,
        body=body,
        author=args.author if args.author is not None else identity.name,
    )
    _write(f"added comment {comment.id} to notice {notice_id}")
    return 0


def cmd_comments_delete(args: argparse.Namespace, g: GlobalOpts) -> int:
    _approved(g)
    api = _api(g)
    notice_id = _resolve_notice_id(api, args.notice_id)
    comment_id = resolve_id((c.id for c in api.list_comments(notice_id)), args.comment_id, label="comment")
    api.delete_comment(comment_id)
    _write(f"deleted comment {comment_id}")
    return 0


# admin


def _admin_api(g: GlobalOpts) -> TeamboardApi:
    _ctx, identity = _approved(g)
    require_admin(identity)
    return _api(g)


def _resolve_user_id(api: TeamboardApi, given: str) -> str:
    needle = (given or "").strip()
    users = api.list_users()
    if "@" in needle:
        for u in users:
            if u.email.strip().lower() == needle.lower():
                return u.id
        raise UsageError(f"no user with email {needle!r}")
    return resolve_id((u.id for u in users), needle, label="user")


def cmd_admin_users(args: argparse.Namespace, g: GlobalOpts) -> int:
    users = _admin_api(g).list_users()
    if g.json_output:
        _print_json({"users": [asdict(u) for u in users]}, pretty=True)
        return 0
    _write(render_admin(users))
    return 0


def _cmd_admin_set(g: GlobalOpts, given: str, *, status: str | None = None, role: str | None = None) -> int:
    api = _admin_api(g)
    user = api.update_user_status(_resolve_user_id(api, given), status=status, role=role)
    _write(f"{user.email or user.id}: status={user.status} role={user.role}")
    return 0


def cmd_admin_approve(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_admin_set(g, args.user, status="approved")


def cmd_admin_reject(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_admin_set(g, args.user, status="rejected")


def cmd_admin_role(args: argparse.Namespace, g: GlobalOpts) -> int:
    return _cmd_admin_set(g, args.user, role=args.role)


def cmd_serve(args: argparse.Namespace, g: GlobalOpts) -> int:
    from ..local_server import serve

    serve(host=args.host, port=int(args.port))
    return 0


# Typer surface

_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {msg}")


def _root_help_text(*, root_app: typer.Typer, prog_name: str) -> str:
    buf = io.StringIO()
    try:
        with contextlib.redirect_stdout(buf):
            try:
                root_app(args=["--help"], prog_name=prog_name, standalone_mode=False)
            except (typer.Exit, click.ClickException):
                pass
    except Exception:
        return ""
    return str(buf.getvalue() or "").strip()


def _render_usage_error_with_help(
    *,
    message: str,
    ctx: click.Context | None = None,
    fallback_help: str = "",
) -> None:
    _rich_error(message)
    help_text = ""
    if isinstance(ctx, click.Context):
        help_text = str(ctx.get_help() or "").strip()
    if not help_text:
        help_text = str(fallback_help or "").strip()
    if help_text:
        _eprint("")
        _eprint(help_text)


def _namespace(**kwargs: Any) -> argparse.Namespace:
    return argparse.Namespace(**kwargs)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"teamboard {__version__}")
        raise typer.Exit(code=0)


app = typer.Typer(
    name="teamboard",
    help="Team tasks, notices and member approvals.",
    no_args_is_help=True,
    add_completion=False,
)

task_app = typer.Typer(help="Create, edit, complete and delete tasks", no_args_is_help=True)
notices_app = typer.Typer(help="Notice board", no_args_is_help=True)
comments_app = typer.Typer(help="Comments on notices", no_args_is_help=True)
admin_app = typer.Typer(help="Member approvals and roles (admin role required)", no_args_is_help=True)

app.add_typer(task_app, name="task")
app.add_typer(notices_app, name="notices")
app.add_typer(comments_app, name="comments")
app.add_typer(admin_app, name="admin")


def _apply_global_env(args: argparse.Namespace) -> GlobalOpts:
    return GlobalOpts(
        api_base_url=args.api_base_url or _env_or_none(TEAMBOARD_API_BASE_URL) or DEFAULT_API_BASE_URL,
        session_file=args.session_file or _env_or_none(TEAMBOARD_SESSION_FILE) or DEFAULT_SESSION_FILE,
        client_id=_env_or_none(TEAMBOARD_CLIENT_ID) or "",
        json_output=bool(args.json_output),
    )


@app.callback()
def app_callback(
    ctx: typer.Context,
    api_base_url: str | None = typer.Option(
        None,
        "--api-base-url",
        help=f"API base URL (default: {DEFAULT_API_BASE_URL}; env override: {TEAMBOARD_API_BASE_URL})",
    ),
    session_file: str | None = typer.Option(
        None,
        "--session-file",
        help=f"Path to the session JSON (default: {DEFAULT_SESSION_FILE}; env override: {TEAMBOARD_SESSION_FILE})",
    ),
    json_output: bool = typer.Option(False, "--json", help="Emit raw JSON output where supported"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    ns = _namespace(api_base_url=api_base_url, session_file=session_file, json_output=json_output)
    ctx.obj = {"g": _apply_global_env(ns)}


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    root = ctx.find_root()
    if isinstance(root.obj, dict) and isinstance(root.obj.get("g"), GlobalOpts):
        return root.obj["g"]
    return _apply_global_env(_namespace(api_base_url=None, session_file=None, json_output=False))


def _invoke(ctx: typer.Context, func: Any, **kwargs: Any) -> None:
    g = _ctx_global(ctx)
    args = _namespace(**kwargs)
    try:
        code = int(func(args, g))
    except UsageError as e:
        _render_usage_error_with_help(message=str(e), ctx=ctx)
        raise typer.Exit(code=2)
    except AdmissionBlocked as e:
        sys.stdout.write(e.screen)
        raise typer.Exit(code=EXIT_ADMISSION_BLOCKED)
    except OpError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)

    if code:
        raise typer.Exit(code=code)


def _invoke_from_locals(
    ctx: typer.Context,
    func: Any,
    local_vars: dict[str, Any],
    *,
    drop: tuple[str, ...] = ("ctx",),
) -> None:
    _invoke(ctx, func, **{k: v for k, v in local_vars.items() if k not in drop})


@app.command("signin", help="Sign in with an identity token and cache the returned role and status.")
def signin(
    ctx: typer.Context,
    id_token: str | None = typer.Option(None, "--id-token", help=f"Identity token (JWT); env fallback: {TEAMBOARD_ID_TOKEN}"),
) -> None:
    _invoke_from_locals(ctx, cmd_signin, locals())


@app.command("signout", help="Forget the cached identity.")
def signout(ctx: typer.Context) -> None:
    _invoke_from_locals(ctx, cmd_signout, locals())


@app.command("whoami", help="Show the cached identity.")
def whoami(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Re-register to pick up an admin's status change"),
) -> None:
    _invoke_from_locals(ctx, cmd_whoami, locals())


@app.command("show", help="Render one screen: dashboard, all, notices, admin, a filter name, or assignee:<name>.")
def show(
    ctx: typer.Context,
    view: str = typer.Argument("dashboard", help="View selector"),
) -> None:
    _invoke_from_locals(ctx, cmd_show, locals())


@app.command("browse", help="Interactive loop: switch views without re-fetching; type 'quit' to leave.")
def browse(
    ctx: typer.Context,
    view: str = typer.Argument("dashboard", help="Starting view"),
) -> None:
    _invoke_from_locals(ctx, cmd_browse, locals())


@app.command("serve", help="Run the API locally (all route families in one process).")
def serve_cmd(
    ctx: typer.Context,
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Bind address"),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Bind port"),
) -> None:
    _invoke_from_locals(ctx, cmd_serve, locals())


@task_app.command("add", help="Create a task.")
def task_add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", help="Task title"),
    assignee: str | None = typer.Option(None, "--assignee", help="Assignee name"),
    due: str | None = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    urgent: bool | None = typer.Option(None, "--urgent/--not-urgent", help="Urgent flag"),
    submission_target: str | None = typer.Option(None, "--submission-target", help="Where the result is submitted"),
    notes: str | None = typer.Option(None, "--notes", help="Free-form notes"),
) -> None:
    _invoke_from_locals(ctx, cmd_task_add, locals())


@task_app.command("edit", help="Change only the given fields of a task.")
def task_edit(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID (full or unique partial)"),
    title: str | None = typer.Option(None, "--title", help="Task title"),
    assignee: str | None = typer.Option(None, "--assignee", help="Assignee name"),
    due: str | None = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
    urgent: bool | None = typer.Option(None, "--urgent/--not-urgent", help="Urgent flag"),
    completed: bool | None = typer.Option(None, "--completed/--open", help="Completion flag"),
    submission_target: str | None = typer.Option(None, "--submission-target", help="Where the result is submitted"),
    notes: str | None = typer.Option(None, "--notes", help="Free-form notes"),
) -> None:
    _invoke_from_locals(ctx, cmd_task_edit, locals())


@task_app.command("complete", help="Mark a task completed (or reopen it with --undo).")
def task_complete(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID (full or unique partial)"),
    undo: bool = typer.Option(False, "--undo", help="Reopen instead of completing"),
) -> None:
    _invoke_from_locals(ctx, cmd_task_complete, locals())


@task_app.command("delete", help="Archive a task.")
def task_delete(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID (full or unique partial)"),
) -> None:
    _invoke_from_locals(ctx, cmd_task_delete, locals())


@notices_app.command("list", help="List notices, newest first.")
def notices_list(ctx: typer.Context) -> None:
    _invoke_from_locals(ctx, cmd_notices_list, locals())


@notices_app.command("show", help="Show one notice with its comments.")
def notices_show(
    ctx: typer.Context,
    notice_id: str = typer.Argument(..., help="Notice ID (full or unique partial)"),
) -> None:
    _invoke_from_locals(ctx, cmd_notices_show, locals())


@notices_app.command("add", help="Post a notice.")
def notices_add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", help="Notice title"),
    body: str | None = typer.Option(None, "--body", help="Notice content"),
    author: str | None = typer.Option(None, "--author", help="Author (default: your name; empty string posts anonymously)"),
    important: bool = typer.Option(False, "--important", help="Mark as important"),
) -> None:
    _invoke_from_locals(ctx, cmd_notices_add, locals())


@notices_app.command("edit", help="Change only the given fields of a notice.")
def notices_edit(
    ctx: typer.Context,
    notice_id: str = typer.Argument(..., help="Notice ID (full or unique partial)"),
    title: str | None = typer.Option(None, "--title", help="Notice title"),
    body: str | None = typer.Option(None, "--body", help="Notice content"),
    important: bool | None = typer.Option(None, "--important/--general", help="Importance"),
) -> None:
    _invoke_from_locals(ctx, cmd_notices_edit, locals())


@notices_app.command("delete", help="Archive a notice.")
def notices_delete(
    ctx: typer.Context,
    notice_id: str = typer.Argument(..., help="Notice ID (full or unique partial)"),
) -> None:
    _invoke_from_locals(ctx, cmd_notices_delete, locals())


@comments_app.command("add", help="Comment on a notice.")
def comments_add(
    ctx: typer.Context,
    notice_id: str = typer.Argument(..., help="Notice ID (full or unique partial)"),
    body: str = typer.Option(..., "--body", help="Comment text"),
    author: str | None = typer.Option(None, "--author", help="Author (default: your name)"),
) -> None:
    _invoke_from_locals(ctx, cmd_comments_add, locals())


@comments_app.command("delete", help="Archive a comment.")
def comments_delete(
    ctx: typer.Context,
    notice_id: str = typer.Argument(..., help="Notice ID (full or unique partial)"),
    comment_id: str = typer.Argument(..., help="Comment ID (full or unique partial)"),
) -> None:
    _invoke_from_locals(ctx, cmd_comments_delete, locals())


@admin_app.command("users", help="List members grouped by admission status.")
def admin_users(ctx: typer.Context) -> None:
    _invoke_from_locals(ctx, cmd_admin_users, locals())


@admin_app.command("approve", help="Approve a member.")
def admin_approve(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="User ID (full or unique partial) or email"),
) -> None:
    _invoke_from_locals(ctx, cmd_admin_approve, locals())


@admin_app.command("reject", help="Reject a member.")
def admin_reject(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="User ID (full or unique partial) or email"),
) -> None:
    _invoke_from_locals(ctx, cmd_admin_reject, locals())


@admin_app.command("role", help="Change a member's role (user, lead, admin).")
def admin_role(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="User ID (full or unique partial) or email"),
    role: str = typer.Argument(..., help="user, lead or admin"),
) -> None:
    _invoke_from_locals(ctx, cmd_admin_role, locals())


def _run_cli(*, root_app: typer.Typer, prog_name: str, argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        _bootstrap_env()
    except UsageError as e:
        _render_usage_error_with_help(
            message=str(e),
            fallback_help=_root_help_text(root_app=root_app, prog_name=prog_name),
        )
        return 2

    try:
        result = root_app(args=argv, prog_name=prog_name, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        if isinstance(e, click.UsageError):
            _render_usage_error_with_help(message=e.format_message(), ctx=getattr(e, "ctx", None))
            return int(e.exit_code)
        _rich_error(e.format_message())
        return int(e.exit_code)
    except click.exceptions.Abort:
        return 1
    except UsageError as e:
        _render_usage_error_with_help(
            message=str(e),
            fallback_help=_root_help_text(root_app=root_app, prog_name=prog_name),
        )
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    return _run_cli(root_app=app, prog_name="teamboard", argv=argv)


if __name__ == "__main__":
    raise SystemExit(main())
