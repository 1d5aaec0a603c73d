import argparse
from pathlib import Path
from typing import List, Optional

from src.orchestration_core import AppController
from src.orchestration_core.errors import OrchestrationError
from src.ui_core import ConsoleApp


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="valheim-manager", description="Manage Valheim dedicated server worlds.")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json (default: next to the app).")

    sub = parser.add_subparsers(dest="command")
    backup = sub.add_parser("backup", help="Create one backup of WORLD and exit (used by the auto-backup timer).")
    backup.add_argument("world")
    return parser


def run_backup(app_dir: Path, config_path: Optional[Path], world: str) -> int:
    """Unattended backup: logs go straight to stdout so the journal keeps them."""
    controller = AppController(app_dir, lambda line: print(line, flush=True), config_path=config_path)
    try:
        controller.load_state()
        controller.create_backup(world)
    except (OrchestrationError, OSError) as e:
        print(f"[ERROR] Backup of '{world}' failed: {e}", flush=True)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    app_dir = Path(__file__).parent

    if args.command == "backup":
        return run_backup(app_dir, args.config, args.world)

    return ConsoleApp(app_dir, config_path=args.config).run()


if __name__ == "__main__":
    raise SystemExit(main())
