#!/usr/bin/env python3
"""
Portfolio API -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000 --reload
  python main.py seed
  python main.py create-admin --email you@example.com --name "Your Name" --password secret123
  python main.py export-pdf 3 resume.pdf

Every command works against DATABASE_URL (see core/config.py). Tables are
created on first use, so a fresh SQLite file needs no migration step.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from core.database import Database
from core.errors import PortfolioError
from core.models import ROLE_ADMIN
from portfolio.lifecycle import BlogService, ProjectService, ResumeService
from portfolio.render import ResumeRenderer
from portfolio.seed import ADMIN_EMAIL, ADMIN_PASSWORD, USER_EMAIL, USER_PASSWORD, seed_demo
from portfolio.store import ContentStore

logger = logging.getLogger("portfolio.cli")


def _open_db() -> Database:
    return Database(get_settings().database_url).connect()


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    db = _open_db()
    try:
        content = ContentStore(db)
        created = seed_demo(UserStore(db), BlogService(content), ProjectService(content), ResumeService(content))
    finally:
        db.close()

    if not created:
        print(f"  Database already seeded ({ADMIN_EMAIL} exists). Nothing to do.")
        return 0
    print("\n  Seeding completed.")
    print("  Login credentials:")
    print(f"    Admin: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
    print(f"    User:  {USER_EMAIL} / {USER_PASSWORD}\n")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    """Create an admin account, or promote an existing account to admin."""
    if len(args.password) < 6:
        print("  [!] Password must be at least 6 characters.")
        return 1

    db = _open_db()
    try:
        store = UserStore(db)
        existing = store.get_by_email(args.email)
        if existing is not None:
            store.update_user(existing.id, role=ROLE_ADMIN, hashed_password=hash_password(args.password))
            print(f"  {existing.email} promoted to ADMIN.")
        else:
            store.create_user(
                User(
                    name=args.name,
                    email=args.email.lower(),
                    hashed_password=hash_password(args.password),
                    role=ROLE_ADMIN,
                    email_verified=True,
                )
            )
            print(f"  Admin {args.email.lower()} created.")
    finally:
        db.close()
    return 0


def cmd_export_pdf(args: argparse.Namespace) -> int:
    """Render a stored resume to a PDF file without going through the API."""
    db = _open_db()
    try:
        resume = ContentStore(db).get_resume(args.resume_id)
    finally:
        db.close()
    if resume is None:
        print(f"  [!] Resume {args.resume_id} not found.")
        return 1

    renderer = ResumeRenderer(timeout_ms=get_settings().pdf_timeout_ms)
    try:
        pdf = asyncio.run(renderer.render_pdf(resume))
    except PortfolioError as e:
        print(f"  [!] {e.message}")
        return 1

    output = Path(args.output)
    output.write_bytes(pdf)
    print(f"  Wrote {len(pdf)} bytes to {output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    parser = argparse.ArgumentParser(
        prog="portfolio-api",
        description="Portfolio API server and maintenance commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py seed
  python main.py create-admin --email you@example.com --name "Your Name" --password secret123
  python main.py export-pdf 3 resume.pdf
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=cmd_serve)

    seed = sub.add_parser("seed", help="Load demo accounts, blogs, projects and a resume")
    seed.set_defaults(func=cmd_seed)

    admin = sub.add_parser("create-admin", help="Create an admin account or promote an existing one")
    admin.add_argument("--email", required=True, help="Account email")
    admin.add_argument("--name", default="Admin", help="Display name for a new account (default: Admin)")
    admin.add_argument("--password", required=True, help="Password, at least 6 characters")
    admin.set_defaults(func=cmd_create_admin)

    export = sub.add_parser("export-pdf", help="Render a stored resume to a PDF file")
    export.add_argument("resume_id", type=int, metavar="RESUME_ID", help="Resume id")
    export.add_argument("output", metavar="OUTPUT", help="Path of the PDF to write")
    export.set_defaults(func=cmd_export_pdf)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
