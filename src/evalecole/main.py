"""Command-line entry point.

Runs the API server and gives operators a few commands that work without a
browser: printing or applying the provisioning script, logging in, and
reading the weekly rankings.

Usage:
    evalecole serve [--host HOST] [--port PORT] [--reload]
    evalecole setup-script
    evalecole provision [--no-seed]
    evalecole login USERNAME [--password PASSWORD]
    evalecole logout
    evalecole whoami
    evalecole rankings [--role ROLE]
"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from evalecole import config
from evalecole.core.exceptions import EvalEcoleError
from evalecole.core.logging_config import setup_logging
from evalecole.schemas.user import ADULT_ROLES, UserRole
from evalecole.utils.entity_store import EntityStore
from evalecole.utils.scoring import ranked_list, week_bounds
from evalecole.utils.session_slot import SessionSlot
from evalecole.utils.user_manager import UserManager
from evalecole.utils.visibility import Route, can_access

logger = logging.getLogger(__name__)


def _ready_store() -> EntityStore:
    # Deferred: building the SQL store creates the engine
    from evalecole.core.dependencies import build_store

    store = build_store()
    store.ensure_ready()
    return store


def _session_slot() -> SessionSlot:
    return SessionSlot(config.SESSION_SLOT_PATH)


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    server_url = f"http://{args.host}:{args.port}"
    print(f"Éval'École API: {server_url}")
    print(f"Documentation: {server_url}/docs")
    uvicorn.run("evalecole.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_setup_script(args: argparse.Namespace) -> int:
    from evalecole.utils.provisioning import SETUP_SQL_SCRIPT

    print(SETUP_SQL_SCRIPT)
    return 0


def cmd_provision(args: argparse.Namespace) -> int:
    """Create the tables on config.DATABASE_URL, with the demo seed by default."""
    from evalecole.core.database import engine
    from evalecole.utils.provisioning import provision_database

    provision_database(engine, seed=not args.no_seed)
    print("Base de données prête.")
    return 0


def cmd_login(args: argparse.Namespace) -> int:
    password = args.password
    if password is None:
        password = getpass.getpass("Mot de passe: ")
    user = UserManager(_ready_store()).authenticate(args.username, password)
    _session_slot().save(user)
    print(f"Connecté: {user.full_name} ({user.role.value})")
    return 0


def cmd_logout(args: argparse.Namespace) -> int:
    _session_slot().clear()
    print("Déconnecté.")
    return 0


def cmd_whoami(args: argparse.Namespace) -> int:
    user = _session_slot().restore(_ready_store())
    if user is None:
        print("Non connecté.")
        return 1
    print(f"{user.full_name} ({user.role.value})")
    return 0


def cmd_rankings(args: argparse.Namespace) -> int:
    """Print the weekly leaderboard for the logged-in user."""
    store = _ready_store()
    user = _session_slot().restore(store)
    if user is None:
        print("Non connecté. Utilisez `evalecole login`.")
        return 1
    if not can_access(user.role, Route.RANKINGS):
        print("Accès refusé.")
        return 1

    role = UserRole(args.role) if args.role else None
    start, end = week_bounds()
    ranked = ranked_list(store.list_users(), store.list_events(), role=role)

    print(f"Semaine du {start:%d/%m/%Y} au {end:%d/%m/%Y}")
    if not ranked:
        print(config.NO_DATA_LABEL)
    for position, entry in enumerate(ranked, start=1):
        print(f"{position:>3}. {entry.user.full_name:<30} {entry.user.role.value:<12} {entry.score:>+5d}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="evalecole", description="Éval'École")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=config.API_HOST)
    serve.add_argument("--port", type=int, default=config.API_PORT)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    script = subparsers.add_parser("setup-script", help="Print the SQL provisioning script")
    script.set_defaults(func=cmd_setup_script)

    provision = subparsers.add_parser("provision", help="Create tables on DATABASE_URL")
    provision.add_argument("--no-seed", action="store_true", help="Skip the demo data")
    provision.set_defaults(func=cmd_provision)

    login = subparsers.add_parser("login", help="Log in and remember the session")
    login.add_argument("username")
    login.add_argument("--password", help="Prompted for when omitted")
    login.set_defaults(func=cmd_login)

    logout = subparsers.add_parser("logout", help="Forget the session")
    logout.set_defaults(func=cmd_logout)

    whoami = subparsers.add_parser("whoami", help="Show the logged-in user")
    whoami.set_defaults(func=cmd_whoami)

    rankings = subparsers.add_parser("rankings", help="Show this week's leaderboard")
    rankings.add_argument(
        "--role",
        choices=[role.value for role in ADULT_ROLES],
        help="Restrict to one role",
    )
    rankings.set_defaults(func=cmd_rankings)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(level="WARNING" if args.command != "serve" else None)
    try:
        return args.func(args)
    except EvalEcoleError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Erreur: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrompu.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
