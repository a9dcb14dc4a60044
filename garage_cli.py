#!/usr/bin/env python3
"""
Command-line front end for the garage.

Commands:
  register      - Create an account
  login         - Sign in and remember the token
  logout        - Forget the saved token
  list          - List your vehicles (with driver's license alerts)
  show          - Show one vehicle, its history and upcoming appointments
  add           - Add a vehicle
  edit          - Edit a vehicle's details
  delete        - Delete a vehicle
  log           - Add a maintenance record (or schedule one with a future date)
  clear-history - Delete a vehicle's maintenance history
  drive         - Run driving actions on a vehicle
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from garage import (
    AuthExpired,
    GarageError,
    GarageSession,
    MaintenanceRecord,
    RemoteStore,
    Vehicle,
    cnh_alerts,
)
from garage import config
from garage.logging_config import setup_logging
from garage.maintenance_record import format_money
from garage.selection import DisplayState, menu_entries
from garage.status import CnhStatus

# =============================================================================
# Formatting helpers
# =============================================================================


def format_speed(speed: float, max_speed: int) -> str:
    """Format speed for display, e.g. '40/180 km/h'."""
    return f"{speed:g}/{max_speed} km/h"


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return format_money(cost) if cost else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_cnh_alert(vehicle: Vehicle, status: CnhStatus, days: int) -> str:
    if status is CnhStatus.EXPIRED:
        return f"{vehicle.model}: driver's license EXPIRED {abs(days)}d ago"
    return f"{vehicle.model}: driver's license expires in {days}d"


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    """Convert vehicles to table rows."""
    rows = []
    for vehicle, (_, label) in zip(vehicles, menu_entries(vehicles)):
        rows.append(
            [
                vehicle.id,
                label,
                vehicle.label,
                vehicle.year or "-",
                vehicle.cnh_expiry.strftime("%d/%m/%Y") if vehicle.cnh_expiry else "-",
            ]
        )
    return rows


def make_history_table(vehicle: Vehicle) -> List[List[str]]:
    """Convert a vehicle's maintenance history to table rows."""
    rows = []
    for record in vehicle.maintenance_history:
        rows.append(
            [
                record.when.strftime("%d/%m/%Y"),
                record.service_type,
                format_cost(record.cost),
                truncate(record.notes),
            ]
        )
    return rows


# =============================================================================
# Session helpers
# =============================================================================


def read_token(token_file: Path) -> Optional[str]:
    if not token_file.exists():
        return None
    return token_file.read_text().strip() or None


def write_token(token_file: Path, token: str) -> None:
    token_file.parent.mkdir(parents=True, exist_ok=True)
    token_file.write_text(token)


def open_session(args, store) -> GarageSession:
    """Resume the saved session (loads the garage)."""
    token = read_token(args.token_file)
    if token is None:
        raise AuthExpired("Not logged in. Run 'login' first.")
    session = GarageSession(store)
    session.resume(token)
    return session


def confirm_prompt(question: str):
    def confirm(vehicle: Vehicle) -> bool:
        answer = input(question.format(model=vehicle.model) + " [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return confirm


# =============================================================================
# Account commands
# =============================================================================


def cmd_register(args, store):
    """Create an account."""
    print(store.register(args.email, args.password))
    return 0


def cmd_login(args, store):
    """Sign in and remember the token."""
    token = store.login(args.email, args.password)
    write_token(args.token_file, token)
    print(f"Logged in as {args.email}.")
    return 0


def cmd_logout(args, store):
    """Forget the saved token."""
    if args.token_file.exists():
        args.token_file.unlink()
    print("Logged out.")
    return 0


# =============================================================================
# Listing commands
# =============================================================================


def cmd_list(args, store):
    """List vehicles sorted by model."""
    session = open_session(args, store)
    vehicles = session.repository.list_vehicles()

    if not vehicles:
        print(session.selection.empty_state)
        return 0

    headers = ["ID", "Vehicle", "Type", "Year", "CNH"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))

    alerts = cnh_alerts(vehicles, date.today())
    if alerts:
        print()
        print("DRIVER'S LICENSE ALERTS:")
        for vehicle, status, days in alerts:
            print(f"  {format_cnh_alert(vehicle, status, days)}")
    return 0


def print_display(display: DisplayState) -> None:
    print(display.title)
    print(f"  Status:  {display.status_text}")
    print(f"  Speed:   {format_speed(display.speed, display.max_speed)}")
    print(f"  Plate:   {display.plate}")
    print(f"  Year:    {display.year}")
    print(f"  CNH:     {display.cnh_text}")
    if display.extra_info:
        print(f"  {display.extra_info}")
    print(f"  Image:   {display.image_ref}")


def cmd_show(args, store):
    """Show one vehicle, its history and upcoming appointments."""
    session = open_session(args, store)
    display = session.selection.select(args.vehicle_id)
    vehicle = session.repository.get(args.vehicle_id)

    print_display(display)
    print()

    print("HISTORY:")
    if vehicle.maintenance_history:
        headers = ["Date", "Service", "Cost", "Notes"]
        print(tabulate(make_history_table(vehicle), headers=headers, tablefmt="simple"))
    else:
        print(f"  {display.maintenance_lines[0]}")
    print()

    if display.upcoming_lines:
        print("UPCOMING:")
        for line in display.upcoming_lines:
            print(f"  {line}")
    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_add(args, store):
    """Add a vehicle."""
    session = open_session(args, store)
    vehicle = session.create(
        {
            "model": args.model,
            "variant": args.type,
            "color": args.color,
            "image_ref": args.image,
            "plate": args.plate,
            "year": args.year,
            "cnh_expiry": args.cnh,
            "cargo_capacity": args.capacity,
        }
    )
    print(f"Added {vehicle.model} ({vehicle.label}) as {vehicle.id}.")
    return 0


def cmd_edit(args, store):
    """Edit a vehicle's details."""
    patch = {
        key: value
        for key, value in (
            ("model", args.model),
            ("color", args.color),
            ("plate", args.plate),
            ("year", args.year),
            ("cnh_expiry", args.cnh),
            ("image_ref", args.image),
        )
        if value is not None
    }
    if not patch:
        print("Error: Nothing to change")
        return 1

    session = open_session(args, store)
    vehicle = session.update(args.vehicle_id, patch)
    print(f"Saved {vehicle.model}.")
    return 0


def cmd_delete(args, store):
    """Delete a vehicle."""
    session = open_session(args, store)
    confirm = (lambda vehicle: True) if args.yes else confirm_prompt("Delete {model}?")
    if session.remove(args.vehicle_id, confirm):
        print("Vehicle deleted.")
    else:
        print("Cancelled.")
    return 0


# =============================================================================
# Maintenance commands
# =============================================================================


def cmd_log(args, store):
    """Add a maintenance record."""
    record = MaintenanceRecord.create(
        args.date or date.today().isoformat(), args.service_type, args.cost, args.notes
    )

    print(f"Adding maintenance to {args.vehicle_id}:")
    print(f"  {record.format_history_line()}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    session = open_session(args, store)
    result = session.add_maintenance(args.vehicle_id, record)
    result.raise_for_status()
    print("Record saved.")
    return 0


def cmd_clear_history(args, store):
    """Delete a vehicle's maintenance history."""
    session = open_session(args, store)
    vehicle = session.repository.get(args.vehicle_id)
    if not args.yes and not confirm_prompt("Clear the history of {model}?")(vehicle):
        print("Cancelled.")
        return 0
    session.clear_maintenance_history(args.vehicle_id)
    print("History cleared.")
    return 0


def parse_action(text: str):
    """'accelerate' -> ('accelerate', []), 'load_cargo=500' -> ('load_cargo', ['500'])."""
    name, _, argument = text.partition("=")
    return name, ([argument] if argument else [])


def cmd_drive(args, store):
    """Run driving actions on a vehicle."""
    session = open_session(args, store)
    vehicle = session.repository.get(args.vehicle_id)

    for text in args.actions:
        name, action_args = parse_action(text)
        result = session.act(vehicle.id, name, *action_args)
        if result.message:
            print(result.message)
        elif result.ok:
            print(f"{vehicle.model} {result.action}.")

    print(
        f"{vehicle.model}: {'On' if vehicle.is_on else 'Off'}, "
        f"{format_speed(vehicle.speed, vehicle.max_speed)}"
    )

    if args.save:
        session.update(vehicle.id, {})
        print("State saved.")
    return 0


# =============================================================================
# Main
# =============================================================================

COMMANDS = {
    "register": cmd_register,
    "login": cmd_login,
    "logout": cmd_logout,
    "list": cmd_list,
    "show": cmd_show,
    "add": cmd_add,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "log": cmd_log,
    "clear-history": cmd_clear_history,
    "drive": cmd_drive,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Personal garage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s login me@example.com secret
  %(prog)s add "Civic" --plate abc1234 --year 2020 --cnh 2027-05-01
  %(prog)s add "Scania R450" --type truck --capacity 10000
  %(prog)s list
  %(prog)s show v1a2b3c4d5e6
  %(prog)s log v1a2b3c4d5e6 "Oil change" --cost 150 --notes "Synthetic"
  %(prog)s log v1a2b3c4d5e6 "Inspection" --date 2030-01-10T09:30
  %(prog)s drive v1a2b3c4d5e6 power_on accelerate accelerate --save
""",
    )
    parser.add_argument(
        "--api-url",
        default=config.API_URL,
        help="Persistence service URL (default: %(default)s)",
    )
    parser.add_argument(
        "--token-file",
        type=Path,
        default=config.TOKEN_FILE,
        help="Where the login token is kept",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level (default: %(default)s)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Account subcommands
    for name, help_text in (("register", "Create an account"), ("login", "Sign in")):
        account_parser = subparsers.add_parser(name, help=help_text)
        account_parser.add_argument("email", type=str)
        account_parser.add_argument("password", type=str)
    subparsers.add_parser("logout", help="Forget the saved token")

    # Listing subcommands
    subparsers.add_parser("list", help="List your vehicles")
    show_parser = subparsers.add_parser("show", help="Show one vehicle")
    show_parser.add_argument("vehicle_id", type=str)

    # Add subcommand
    add_parser = subparsers.add_parser("add", help="Add a vehicle")
    add_parser.add_argument("model", type=str, help="Vehicle model")
    add_parser.add_argument(
        "--type",
        choices=["base", "sport", "truck"],
        default="base",
        help="Vehicle type (default: base)",
    )
    add_parser.add_argument("--color", type=str, default="")
    add_parser.add_argument("--image", type=str, help="Image reference")
    add_parser.add_argument("--plate", type=str, default="")
    add_parser.add_argument("--year", type=int)
    add_parser.add_argument("--cnh", type=str, help="License expiry (YYYY-MM-DD)")
    add_parser.add_argument(
        "--capacity", type=int, default=0, help="Cargo capacity in kg (trucks)"
    )

    # Edit subcommand
    edit_parser = subparsers.add_parser("edit", help="Edit a vehicle")
    edit_parser.add_argument("vehicle_id", type=str)
    edit_parser.add_argument("--model", type=str)
    edit_parser.add_argument("--color", type=str)
    edit_parser.add_argument("--image", type=str)
    edit_parser.add_argument("--plate", type=str)
    edit_parser.add_argument("--year", type=int)
    edit_parser.add_argument("--cnh", type=str, help="License expiry (YYYY-MM-DD)")

    # Delete subcommand
    delete_parser = subparsers.add_parser("delete", help="Delete a vehicle")
    delete_parser.add_argument("vehicle_id", type=str)
    delete_parser.add_argument("--yes", action="store_true", help="Do not ask")

    # Log subcommand
    log_parser = subparsers.add_parser("log", help="Add a maintenance record")
    log_parser.add_argument("vehicle_id", type=str)
    log_parser.add_argument("service_type", type=str, help="e.g. 'Oil change'")
    log_parser.add_argument(
        "--date",
        type=str,
        help="Date (YYYY-MM-DD) or date and time (default: today)",
    )
    log_parser.add_argument("--cost", type=float, default=0)
    log_parser.add_argument("--notes", type=str, default="")
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Clear history subcommand
    clear_parser = subparsers.add_parser(
        "clear-history", help="Delete a vehicle's maintenance history"
    )
    clear_parser.add_argument("vehicle_id", type=str)
    clear_parser.add_argument("--yes", action="store_true", help="Do not ask")

    # Drive subcommand
    drive_parser = subparsers.add_parser("drive", help="Run driving actions")
    drive_parser.add_argument("vehicle_id", type=str)
    drive_parser.add_argument(
        "actions",
        nargs="+",
        help=(
            "power_on, power_off, accelerate, brake, honk, toggle_turbo "
            "or load_cargo=<kg>"
        ),
    )
    drive_parser.add_argument(
        "--save",
        action="store_true",
        help="Persist the resulting state",
    )

    return parser


def main(argv=None, store=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if store is None:
        store = RemoteStore(args.api_url, timeout=config.REQUEST_TIMEOUT)

    try:
        return COMMANDS[args.command](args, store)
    except AuthExpired as e:
        if args.token_file.exists():
            args.token_file.unlink()
        print(f"Error: {e}")
        return 1
    except GarageError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
