"""
roadwatch/cli.py
Command-line interface for Roadwatch.

USAGE:
  roadwatch classify "гололед на мосту, очень опасно"
  roadwatch say "ассистент зафиксируй яму на дороге" --lat 43.2389 --lon 76.8897
  roadwatch record "авария на перекрестке" --lat 43.2389 --lon 76.8897
  roadwatch listen --lat 43.2389 --lon 76.8897
  roadwatch list
  roadwatch delete <id>   --email admin@example.com
  roadwatch delete-all    --email admin@example.com --yes

Settings come from roadwatch_config.json in --config-dir (default: cwd)
and ROADWATCH_* environment variables. See roadwatch/config.py.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from roadwatch.config import is_privileged, load_config, validate_config
from roadwatch.detectors.danger_classifier import classifier_for
from roadwatch.errors import PreconditionError, PrivilegeRequiredError, RemoteStoreError
from roadwatch.models.record import PrivilegeContext
from roadwatch.pipeline import Status, build_pipeline
from roadwatch.store.hazard_store import record_to_dict
from roadwatch.voice.session import ConsoleRecognizer

logger = logging.getLogger(__name__)

GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
RESET  = '\033[0m'
BOLD   = '\033[1m'

DANGER_COLOR = {'high': RED, 'medium': YELLOW, 'low': GREEN}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'roadwatch',
        description = 'Roadwatch — voice road-hazard intake, classification and storage',
        formatter_class = argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--config-dir',
        type    = Path,
        default = None,
        help    = 'Directory holding roadwatch_config.json (default: cwd)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('classify', help='Show danger tier and evidence for text')
    p.add_argument('text')

    for name, help_text in (
        ('say',    'Run one transcript through the voice pipeline'),
        ('record', 'Record a hazard description directly (no trigger word)'),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('text')
        _add_location(p)
        _add_identity(p)

    p = sub.add_parser('listen', help='One recognition session from the terminal')
    _add_location(p)
    _add_identity(p)

    p = sub.add_parser('list', help='List hazards, newest first')
    p.add_argument('--json', action='store_true', help='Print raw JSON')

    p = sub.add_parser('delete', help='Delete one hazard (admin)')
    p.add_argument('hazard_id')
    _add_identity(p)

    p = sub.add_parser('delete-all', help='Delete every hazard (admin)')
    _add_identity(p)
    p.add_argument('--yes', '-y', action='store_true', help='Skip confirmation prompt')

    return parser


def _add_location(p: argparse.ArgumentParser) -> None:
    p.add_argument('--lat', type=float, default=None, help='Latitude of the location fix')
    p.add_argument('--lon', type=float, default=None, help='Longitude of the location fix')


def _add_identity(p: argparse.ArgumentParser) -> None:
    p.add_argument('--email', default=None, help='Authenticated identity of the caller')


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    config = load_config(args.config_dir)

    if args.command == 'classify':
        return _cmd_classify(args, config)

    validate_config(config)
    pipeline = build_pipeline(config)
    context  = PrivilegeContext(
        privileged = is_privileged(getattr(args, 'email', None), config.get('admin_email')),
        identity   = getattr(args, 'email', None),
    )

    try:
        if args.command in ('say', 'record', 'listen'):
            location = _location(args)
            if args.command == 'say':
                outcome = pipeline.handle_transcript(args.text, location, context)
            elif args.command == 'record':
                outcome = pipeline.record_hazard(args.text, location)
            else:
                outcome = asyncio.run(pipeline.listen(ConsoleRecognizer(), location, context))
            return _print_outcome(outcome)

        if args.command == 'list':
            return _cmd_list(pipeline, args.json)

        if args.command == 'delete':
            result = pipeline.store.delete_one(args.hazard_id, context)
            _ok(f"Deleted {result.deleted} hazard(s) [{result.origin.value}]")
            return 0

        if args.command == 'delete-all':
            if not context.privileged:
                raise PrivilegeRequiredError("Privileged caller required to delete all hazards.")
            if not args.yes and input("Delete ALL hazards? [y/N] ").strip().lower() != 'y':
                _print("Aborted.")
                return 1
            result = pipeline.store.delete_all(context)
            _ok(f"Deleted {result.deleted} hazard(s)")
            return 0

    except PreconditionError as e:
        _print(f"{RED}✗ {e}{RESET}")
        return 2
    except RemoteStoreError as e:
        _print(f"{RED}✗ Remote store error\n  Code: {e.code}\n  Message: {e.message}{RESET}")
        return 3

    return 1


# ── COMMANDS ─────────────────────────────────────────────────

def _cmd_classify(args, config) -> int:
    result = classifier_for(config.get('language', 'ru')).classify(args.text)
    color  = DANGER_COLOR.get(result.tier, RESET)
    _print(f"{BOLD}{color}{result.tier.upper()}{RESET}  score={result.score}")
    for ev in result.evidence:
        _print(f"  • {ev.stem:<16} +{ev.weight:<3} ({ev.method})")
    return 0


def _cmd_list(pipeline, as_json: bool) -> int:
    result = pipeline.store.list_hazards()
    if as_json:
        _print(json.dumps([record_to_dict(r) for r in result.value], ensure_ascii=False, indent=2))
        return 0
    if result.degraded:
        _print(f"{YELLOW}⚠ Remote store unavailable — showing local cache ({result.error}){RESET}")
    if not result.value:
        _print("No hazards.")
    for r in result.value:
        color = DANGER_COLOR.get(r.danger, RESET)
        _print(f"  {color}●{RESET} [{r.danger:<6}] {r.text}  — {r.address}  {CYAN}{r.id}{RESET}")
    return 0


def _location(args):
    if args.lat is None or args.lon is None:
        return None
    return args.lat, args.lon


def _print_outcome(outcome) -> int:
    if outcome.status is Status.RECORDED:
        _ok(outcome.message)
        return 0
    if outcome.status is Status.RECORDED_LOCALLY:
        _print(f"{YELLOW}⚠ {outcome.message}{RESET}")
        return 0
    _print(f"{YELLOW}{outcome.message}{RESET}")
    return 0 if outcome.status is Status.DELETE_GUIDANCE else 1


# ── PRINT HELPERS ────────────────────────────────────────────

def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)


if __name__ == '__main__':
    sys.exit(main())
