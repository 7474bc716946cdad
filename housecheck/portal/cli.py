#!/usr/bin/env python3
"""
Command line front end for the HouseCheck portal.

Usage:
    housecheck signin you@example.com
    housecheck houses --search maple
    housecheck upload HOUSE_ID INSPECTION_ID photos/*.jpg
"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional, Tuple

from ..config import configure_logging, settings
from .client import DataAccessClient
from .errors import PortalError
from .notifications import Notifier
from .session import SessionProvider
from .uploader import LocalImage
from .views import DashboardView, HouseDetailView, InspectionDetailView

logger = logging.getLogger(__name__)


def build_portal(base_url: Optional[str] = None, session_file: Optional[str] = None,
                 http=None) -> Tuple[SessionProvider, Notifier]:
    """One client, one session and one notifier for the whole application."""
    client = DataAccessClient(base_url=base_url, session=http)
    session = SessionProvider(client, session_file=session_file)
    session.restore()
    return session, Notifier()


def _fmt_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "None"


# ---------- Commands ----------

def cmd_signup(args, session, notifier):
    password = args.password or getpass.getpass("Password: ")
    identity = session.sign_up(args.email, password)
    notifier.success("Account created successfully!")
    print(f"Signed in as {identity.email}")

def cmd_signin(args, session, notifier):
    password = args.password or getpass.getpass("Password: ")
    identity = session.sign_in(args.email, password)
    notifier.success("Signed in successfully!")
    print(f"Signed in as {identity.email}")

def cmd_signout(args, session, notifier):
    session.sign_out()
    print("Signed out")

def cmd_whoami(args, session, notifier):
    identity = session.require_identity()
    print(f"{identity.email} ({identity.id})")

def cmd_houses(args, session, notifier):
    view = DashboardView(session, notifier)
    view.load()
    for house in view.search(args.search or ""):
        print(f"{house.id}  {house.name:<30} {house.address or '':<40} {house.inspection_count} inspection(s)")
    s = view.stats()
    print(f"\n{s.total_houses} house(s), {s.total_inspections} inspection(s), {s.houses_this_month} added this month")

def cmd_house_add(args, session, notifier):
    view = DashboardView(session, notifier)
    house = view.create_house(args.name, args.address)
    print(house.id)

def cmd_house_edit(args, session, notifier):
    view = DashboardView(session, notifier)
    view.load()
    current = view.houses.get(args.house_id)
    name = args.name if args.name is not None else (current.name if current else None)
    address = args.address if args.address is not None else (current.address if current else None)
    view.update_house(args.house_id, name, address)

def cmd_house_rm(args, session, notifier):
    if not args.yes and input("Delete this house and all of its inspections? [y/N] ").lower() != "y":
        return
    DashboardView(session, notifier).delete_house(args.house_id)

def cmd_inspections(args, session, notifier):
    view = HouseDetailView(session, notifier, args.house_id)
    house = view.load()
    print(f"{house.name}  {house.address or ''}\n")
    for inspection in view.search(args.search or ""):
        print(f"{inspection.id}  {_fmt_date(inspection.inspection_date)}  {inspection.title:<30} "
              f"{inspection.image_count} image(s)")
    s = view.stats()
    print(f"\n{s.total} inspection(s), {s.this_month} this month, latest {_fmt_date(s.latest_date)}")

def cmd_inspection_add(args, session, notifier):
    view = HouseDetailView(session, notifier, args.house_id)
    date = args.date or view.form_defaults()["inspection_date"]
    inspection = view.create_inspection(args.title, date, args.notes)
    print(inspection.id)

def cmd_inspection_edit(args, session, notifier):
    view = HouseDetailView(session, notifier, args.house_id)
    view.load()
    defaults = view.form_defaults(args.inspection_id)
    view.update_inspection(
        args.inspection_id,
        args.title if args.title is not None else defaults["title"],
        args.date or defaults["inspection_date"],
        args.notes if args.notes is not None else defaults["notes"],
    )

def cmd_inspection_rm(args, session, notifier):
    if not args.yes and input("Delete this inspection? [y/N] ").lower() != "y":
        return
    HouseDetailView(session, notifier, args.house_id).delete_inspection(args.inspection_id)

def cmd_images(args, session, notifier):
    view = InspectionDetailView(session, notifier, args.house_id, args.inspection_id)
    inspection = view.load()
    print(f"{inspection.title}  {_fmt_date(inspection.inspection_date)}\n")
    for image in view.images:
        print(f"{image.id}  {image.url}")

def cmd_upload(args, session, notifier):
    view = InspectionDetailView(session, notifier, args.house_id, args.inspection_id)
    view.load()
    try:
        files = [LocalImage.from_path(p) for p in args.files]
    except OSError as e:
        notifier.error(f"Cannot read {e.filename}")
        raise PortalError(f"Cannot read {e.filename}: {e.strerror}") from e
    result = view.upload(files)
    for progress in view.uploader.progress:
        print(f"{progress.file:<40} {progress.status.value}")
    if result.failed:
        raise SystemExit(1)

def cmd_image_rm(args, session, notifier):
    view = InspectionDetailView(session, notifier, args.house_id, args.inspection_id)
    view.load()
    view.delete_image(args.image_id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="housecheck", description="Manage houses, inspections and photos")
    parser.add_argument("--api-url", default=settings.API_URL, help="Backend API URL")
    parser.add_argument("--session-file", default=settings.SESSION_FILE)
    parser.add_argument("--debug", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, func in (("signup", cmd_signup), ("signin", cmd_signin)):
        p = sub.add_parser(name)
        p.add_argument("email")
        p.add_argument("--password")
        p.set_defaults(func=func)

    sub.add_parser("signout").set_defaults(func=cmd_signout)
    sub.add_parser("whoami").set_defaults(func=cmd_whoami)

    p = sub.add_parser("houses", help="List houses")
    p.add_argument("--search")
    p.set_defaults(func=cmd_houses)

    p = sub.add_parser("house-add")
    p.add_argument("name")
    p.add_argument("--address")
    p.set_defaults(func=cmd_house_add)

    p = sub.add_parser("house-edit")
    p.add_argument("house_id")
    p.add_argument("--name")
    p.add_argument("--address")
    p.set_defaults(func=cmd_house_edit)

    p = sub.add_parser("house-rm")
    p.add_argument("house_id")
    p.add_argument("-y", "--yes", action="store_true")
    p.set_defaults(func=cmd_house_rm)

    p = sub.add_parser("inspections", help="List inspections of a house")
    p.add_argument("house_id")
    p.add_argument("--search")
    p.set_defaults(func=cmd_inspections)

    p = sub.add_parser("inspection-add")
    p.add_argument("house_id")
    p.add_argument("title")
    p.add_argument("--date", help="YYYY-MM-DD, defaults to today")
    p.add_argument("--notes")
    p.set_defaults(func=cmd_inspection_add)

    p = sub.add_parser("inspection-edit")
    p.add_argument("house_id")
    p.add_argument("inspection_id")
    p.add_argument("--title")
    p.add_argument("--date")
    p.add_argument("--notes")
    p.set_defaults(func=cmd_inspection_edit)

    p = sub.add_parser("inspection-rm")
    p.add_argument("house_id")
    p.add_argument("inspection_id")
    p.add_argument("-y", "--yes", action="store_true")
    p.set_defaults(func=cmd_inspection_rm)

    p = sub.add_parser("images")
    p.add_argument("house_id")
    p.add_argument("inspection_id")
    p.set_defaults(func=cmd_images)

    p = sub.add_parser("upload", help="Upload photos to an inspection")
    p.add_argument("house_id")
    p.add_argument("inspection_id")
    p.add_argument("files", nargs="+")
    p.set_defaults(func=cmd_upload)

    p = sub.add_parser("image-rm")
    p.add_argument("house_id")
    p.add_argument("inspection_id")
    p.add_argument("image_id")
    p.set_defaults(func=cmd_image_rm)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug or settings.DEBUG)
    session, notifier = build_portal(args.api_url, args.session_file)
    try:
        args.func(args, session, notifier)
    except PortalError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
