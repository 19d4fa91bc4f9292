"""
Spinwheel CLI - Command-line interface for the wheel.

Usage:
    spinwheel add <name> [--color C]       Add a participant
    spinwheel list                         List participants
    spinwheel remove <id>                  Delete a participant
    spinwheel toggle <id>                  Enable/disable a participant
    spinwheel spin [--times N]             Spin and record the winner
    spinwheel history [--limit N] [--csv]  Show spin history
    spinwheel stats                        Show statistics
    spinwheel settings [key=value ...]     Show or change settings
    spinwheel share [--base-url URL]       Print a share token or link
    spinwheel load-share <token-or-link>   Replace the wheel with a shared one
    spinwheel export [-o FILE]             Write a JSON backup
    spinwheel import <file>                Restore a JSON backup
    spinwheel reset --yes                  Delete everything
    spinwheel serve [--host H] [--port P]  Run the HTTP API

All commands take --data-dir (default $SPINWHEEL_DATA_DIR or ~/.spinwheel).
"""

import argparse
import json
import sys

from .api.service import WheelService
from .config import AppConfig, configure_logging
from .engine_core.errors import SpinwheelError
from .engine_core.models import SETTINGS_KEYS
from .store import EntityStore, JsonFileSubstrate


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Spinwheel - Random participant picker",
        prog="spinwheel",
    )
    parser.add_argument("--data-dir", help="Directory holding the wheel's data")
    parser.add_argument("--log-level", help="Logging level (default from SPINWHEEL_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Roster commands
    add_parser = subparsers.add_parser("add", help="Add a participant")
    add_parser.add_argument("name", help="Participant name (2-15 characters)")
    add_parser.add_argument("--color", help="Slice color, e.g. #FF6B6B")

    list_parser = subparsers.add_parser("list", help="List participants")
    list_parser.add_argument("--enabled", action="store_true", help="Only enabled participants")

    remove_parser = subparsers.add_parser("remove", help="Delete a participant")
    remove_parser.add_argument("participant_id", help="Participant id")

    toggle_parser = subparsers.add_parser("toggle", help="Enable or disable a participant")
    toggle_parser.add_argument("participant_id", help="Participant id")

    # Spin command
    spin_parser = subparsers.add_parser("spin", help="Spin the wheel")
    spin_parser.add_argument("--times", type=int, default=1, help="Number of spins")

    # History & stats
    history_parser = subparsers.add_parser("history", help="Show spin history")
    history_parser.add_argument("--limit", type=int, help="Most recent N spins")
    history_parser.add_argument("--csv", action="store_true", help="Print as CSV")

    subparsers.add_parser("stats", help="Show statistics")

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_parser.add_argument(
        "assignments", nargs="*", metavar="key=value",
        help=f"One of: {', '.join(SETTINGS_KEYS)}",
    )

    # Sharing
    share_parser = subparsers.add_parser("share", help="Print a share token")
    share_parser.add_argument("--base-url", help="Print a full link on this URL")

    load_parser = subparsers.add_parser("load-share", help="Load a shared wheel")
    load_parser.add_argument("token", help="Share token or link")

    # Backup
    export_parser = subparsers.add_parser("export", help="Write a JSON backup")
    export_parser.add_argument("--output", "-o", help="Output file (default stdout)")

    import_parser = subparsers.add_parser("import", help="Restore a JSON backup")
    import_parser.add_argument("backup_file", help="Path to backup file")

    reset_parser = subparsers.add_parser("reset", help="Delete all data")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    # Server
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    return parser


COMMANDS = {}


def command(name):
    def register(func):
        COMMANDS[name] = func
        return func
    return register


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = AppConfig.from_env()
    if args.data_dir:
        config.data_dir = args.data_dir
    configure_logging(args.log_level or config.log_level)

    service = WheelService(store=EntityStore(JsonFileSubstrate(config.data_dir)))
    try:
        COMMANDS[args.command](service, args, config)
    except SpinwheelError as e:
        print(f"Error: {e}")
        sys.exit(1)


@command("add")
def cmd_add(service, args, config):
    participant = service.add_participant(args.name, color=args.color)
    print(f"Added {participant.name} ({participant.id}) {participant.color}")


@command("list")
def cmd_list(service, args, config):
    result = service.list_participants(enabled_only=args.enabled)
    if not result.participants:
        print("No participants yet")
        return
    for p in result.participants:
        status = "on " if p.enabled else "off"
        print(f"[{status}] {p.name:<15} {p.color}  {p.id}")
    if not result.can_spin:
        print("\nAdd or enable at least 2 participants to spin")


@command("remove")
def cmd_remove(service, args, config):
    service.delete_participant(args.participant_id)
    print(f"Deleted {args.participant_id}")


@command("toggle")
def cmd_toggle(service, args, config):
    participant = service.toggle_participant(args.participant_id)
    print(f"{participant.name} is now {'enabled' if participant.enabled else 'disabled'}")


@command("spin")
def cmd_spin(service, args, config):
    for _ in range(max(args.times, 1)):
        spin = service.start_spin()
        result = service.complete_spin(spin.spin_id)
        print(f"#{result.entry.sequence_number}: {result.entry.participant_name}")


@command("history")
def cmd_history(service, args, config):
    if args.csv:
        print(service.export_history_csv(), end="")
        return
    history = service.get_history(limit=args.limit)
    if not history.entries:
        print("No spins yet")
        return
    for entry in history.entries:
        print(f"#{entry.sequence_number:<4} {entry.timestamp}  {entry.participant_name}")
    if history.count < history.total:
        print(f"\n({history.count} of {history.total} spins)")


@command("stats")
def cmd_stats(service, args, config):
    stats = service.get_statistics()
    print(f"Total spins: {stats.total_spins}")
    for s in stats.statistics:
        print(
            f"{s.name:<15} wins={s.win_count:<4} {s.percentage:5.1f}%  "
            f"streak={s.current_streak} best={s.longest_streak}"
        )


@command("settings")
def cmd_settings(service, args, config):
    if args.assignments:
        changes = {}
        for assignment in args.assignments:
            key, sep, value = assignment.partition("=")
            if not sep:
                print(f"Error: expected key=value, got '{assignment}'")
                sys.exit(1)
            changes[key.strip()] = _parse_value(value.strip())
        service.store.update_settings(**changes)

    settings = service.get_settings()
    for key, value in settings.model_dump(mode="json").items():
        print(f"{key} = {value}")


def _parse_value(raw: str):
    """Interpret JSON literals (numbers, true/false); anything else is a string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@command("share")
def cmd_share(service, args, config):
    share = service.create_share(base_url=args.base_url)
    print(share.link or share.token)


@command("load-share")
def cmd_load_share(service, args, config):
    if "://" in args.token or "?" in args.token:
        result = service.apply_share(link=args.token)
    else:
        result = service.apply_share(token=args.token)
    if not result.applied:
        print("Error: share token could not be used")
        sys.exit(1)
    print(f"Loaded shared wheel with {result.participant_count} participants")


@command("export")
def cmd_export(service, args, config):
    text = json.dumps(service.export_backup(), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Backup written to {args.output}")
    else:
        print(text)


@command("import")
def cmd_import(service, args, config):
    try:
        with open(args.backup_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {args.backup_file}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: {args.backup_file} is not valid JSON: {e}")
        sys.exit(1)

    service.import_backup(data)
    print(f"Imported {args.backup_file}")


@command("reset")
def cmd_reset(service, args, config):
    if not args.yes:
        print("Refusing to delete everything without --yes")
        sys.exit(1)
    service.reset()
    print("All data deleted")


@command("serve")
def cmd_serve(service, args, config):
    import uvicorn
    from .api.app import create_app

    uvicorn.run(create_app(service=service, config=config), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
