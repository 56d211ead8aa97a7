"""Command line for the job application tracker."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import yaml
from filelock import FileLock, Timeout
from pydantic import ValidationError

from .config import Config, get_config, load_config
from .dates import format_display_date
from .forms import draft_defaults, draft_from_record, validate_form
from .models import ALL_STATUSES, STATUS_CODES, Application, status_to_label
from .notifier import get_notifier
from .spreadsheet import COLUMNS, SpreadsheetImportError
from .state import ApplicationNotFoundError, ApplicationState
from .store import ApplicationStore, LocalStorage

logger = logging.getLogger(__name__)

# CLI option -> form field
FIELD_OPTIONS = {
    "company": "company_name",
    "title": "job_title",
    "applied_at": "applied_at",
    "salary": "expected_salary",
    "status": "status",
    "contact_name": "contact_name",
    "contact_email": "contact_email",
    "contact_phone": "contact_phone",
    "link": "job_link",
    "notes": "notes",
}


def setup_logging(config: Config) -> None:
    """Configure logging for the application."""
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = config.log_dir / "app.log"

    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stderr),
        ],
    )


def build_state(config: Config) -> ApplicationState:
    store = ApplicationStore(LocalStorage(config.data_dir), key=config.storage_key)
    state = ApplicationState(store, notifier=get_notifier(config))
    state.load()
    return state


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-tracker",
        description="Track job applications: add, edit, delete, search, import and export.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List applications")
    list_cmd.add_argument("--search", default="", help="Company name contains this text")
    list_cmd.add_argument(
        "--status",
        default=ALL_STATUSES,
        choices=[ALL_STATUSES] + [s.value for s in STATUS_CODES],
    )

    add_cmd = sub.add_parser("add", help="Add an application")
    _add_field_options(add_cmd)

    edit_cmd = sub.add_parser("edit", help="Edit an application")
    edit_cmd.add_argument("id")
    _add_field_options(edit_cmd)

    delete_cmd = sub.add_parser("delete", help="Delete an application")
    delete_cmd.add_argument("id")
    delete_cmd.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    export_cmd = sub.add_parser("export", help="Export all applications to an .xlsx file")
    export_cmd.add_argument("--output", type=Path, default=None)

    import_cmd = sub.add_parser("import", help="Import applications from an .xlsx file")
    import_cmd.add_argument("path", type=Path)

    return parser


def _add_field_options(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--company")
    cmd.add_argument("--title")
    cmd.add_argument("--applied-at", dest="applied_at", help="YYYY-MM-DD")
    cmd.add_argument("--salary")
    cmd.add_argument("--status", help="|".join(s.value for s in STATUS_CODES))
    cmd.add_argument("--contact-name", dest="contact_name")
    cmd.add_argument("--contact-email", dest="contact_email")
    cmd.add_argument("--contact-phone", dest="contact_phone")
    cmd.add_argument("--link")
    cmd.add_argument("--notes")


def form_values(args: argparse.Namespace, base: dict) -> dict:
    """Overlay the options given on the command line onto base form values."""
    values = dict(base)
    for option, field_name in FIELD_OPTIONS.items():
        value = getattr(args, option, None)
        if value is not None:
            values[field_name] = value
    return values


def format_row(app: Application) -> str:
    contact = " ".join(
        part for part in (app.contact_name, app.contact_email, app.contact_phone) if part
    )
    salary = app.expected_salary if app.expected_salary is not None else "-"
    return "\t".join(
        str(cell)
        for cell in (
            app.id,
            app.company_name,
            app.job_title,
            format_display_date(app.applied_at),
            salary,
            status_to_label(app.status),
            contact or "-",
            app.job_link or "-",
            app.notes or "-",
        )
    )


def print_errors(errors: dict) -> None:
    for name, message in errors.items():
        print(f"{name}: {message}", file=sys.stderr)


def cmd_list(state: ApplicationState, args: argparse.Namespace) -> int:
    state.set_search(args.search)
    state.set_status_filter(args.status)
    rows = state.visible()
    if not rows:
        print("لا توجد سجلات مطابقة")
        return 0
    print("\t".join(["id"] + COLUMNS[:5] + ["جهة الاتصال", COLUMNS[8], COLUMNS[9]]))
    for app in rows:
        print(format_row(app))
    return 0


def cmd_add(state: ApplicationState, args: argparse.Namespace) -> int:
    result = validate_form(form_values(args, draft_defaults(date.today())))
    if not result.ok:
        print_errors(result.errors)
        return 1
    app = state.add(result.draft)
    print(f"تمت إضافة سجل جديد: {app.id}")
    return 0


def cmd_edit(state: ApplicationState, args: argparse.Namespace) -> int:
    current = state.begin_edit(args.id)
    result = validate_form(form_values(args, draft_from_record(current)))
    if not result.ok:
        state.cancel_edit()
        print_errors(result.errors)
        return 1
    outcome = state.edit(args.id, result.draft)
    print("تم تحديث السجل")
    if outcome.notification is not None:
        print(outcome.notification.message)
    return 0


def cmd_delete(state: ApplicationState, args: argparse.Namespace) -> int:
    app = state.get(args.id)
    if not args.yes:
        answer = input(f"هل أنت متأكد من حذف هذا السجل؟ ({app.company_name}) [y/N] ")
        if answer.strip().lower() not in ("y", "yes", "نعم"):
            return 0
    state.delete(args.id)
    print("تم حذف السجل")
    return 0


def cmd_export(state: ApplicationState, args: argparse.Namespace, config: Config) -> int:
    output = args.output or Path(config.export_filename)
    count = state.export_file(output, sheet_name=config.sheet_name)
    print(f"تم تصدير الملف: {output} ({count})")
    return 0


def cmd_import(state: ApplicationState, args: argparse.Namespace) -> int:
    try:
        result = state.import_file(args.path)
    except SpreadsheetImportError as e:
        logger.error(f"Import failed: {e}")
        print("فشل الاستيراد: تحقق من تنسيق الملف", file=sys.stderr)
        return 1
    print(f"تم الاستيراد: {result.imported} سجلات")
    if result.dropped:
        print(f"تم تجاهل {result.dropped} صفوف")
    return 0


def run_command(args: argparse.Namespace, config: Config) -> int:
    state = build_state(config)
    try:
        if args.command == "list":
            return cmd_list(state, args)
        if args.command == "add":
            return cmd_add(state, args)
        if args.command == "edit":
            return cmd_edit(state, args)
        if args.command == "delete":
            return cmd_delete(state, args)
        if args.command == "export":
            return cmd_export(state, args, config)
        if args.command == "import":
            return cmd_import(state, args)
    except ApplicationNotFoundError as e:
        print(f"لا يوجد سجل بالمعرف {e}", file=sys.stderr)
        return 1
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point with concurrency protection."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_config()
        setup_logging(config)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    config.data_dir.mkdir(parents=True, exist_ok=True)

    try:
        with FileLock(config.lock_path, timeout=config.lock_timeout):
            logger.debug(f"Acquired lock {config.lock_path}")
            return run_command(args, config)

    except Timeout:
        logger.warning("Could not acquire lock - another instance is running")
        print("Another job-tracker command is running, try again.", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
