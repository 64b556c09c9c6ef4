"""
controlrun CLI.

Runs the controls declared in a Python file.

The file must define either `profile` (a Profile), `profiles` (a list of
Profiles) or `rules` (a list of Rules).

Usage:
    python -m controlrun controls.py
    python -m controlrun controls.py --format json --output results.json
    python -m controlrun controls.py --report report.json
    python -m controlrun controls.py --list
"""

from __future__ import annotations

import argparse
import importlib.util
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from controlrun import __version__
from controlrun.formatters import FORMATTERS
from controlrun.ir.serialize import groups_to_dict, to_json
from controlrun.rule import Profile, Rule
from controlrun.runner import ControlRunner


def load_controls(path: Path) -> Tuple[List[Profile], List[Rule]]:
    """
    Import a controls file and collect what it declares.

    Raises:
        ValueError: If the file declares no profile and no rules.
    """
    spec = importlib.util.spec_from_file_location(f"_controls_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot load controls from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    profiles: List[Profile] = list(getattr(module, "profiles", []))
    if hasattr(module, "profile"):
        profiles.append(module.profile)

    rules: List[Rule] = [rule for profile in profiles for rule in profile.rules]
    rules.extend(getattr(module, "rules", []))

    if not profiles and not rules:
        raise ValueError(f"{path} declares no 'profile', 'profiles' or 'rules'")
    return profiles, rules


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code: 0 if all checks passed, 1 if any failed, 2 if error
    """
    parser = argparse.ArgumentParser(
        prog="controlrun",
        description="Compile and run compliance controls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s controls.py
    %(prog)s controls.py --format json-min --output results.json
    %(prog)s controls.py --color --report report.json

Exit codes:
    0 - All checks passed (skipped checks do not fail)
    1 - At least one check failed
    2 - Error loading or compiling controls
        """,
    )

    parser.add_argument(
        "controls",
        type=str,
        help="Python file declaring a profile or rules",
    )

    parser.add_argument(
        "--format", "-f",
        type=str,
        default="cli",
        help=f"Output format: {', '.join(sorted(FORMATTERS))} or module:Class (default: cli)",
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "--color",
        action="store_true",
        help="Colorize text output",
    )

    parser.add_argument(
        "--report",
        type=str,
        default=None,
        metavar="PATH",
        help="Also write the structured JSON report to PATH",
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the compiled checks as JSON instead of running them",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log compilation and run progress to stderr",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parsed = parser.parse_args(args)

    if parsed.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    controls_path = Path(parsed.controls).resolve()
    if not controls_path.is_file():
        print(f"Error: Controls file does not exist: {controls_path}", file=sys.stderr)
        return 2

    try:
        profiles, rules = load_controls(controls_path)
        runner = ControlRunner({
            "output": parsed.output,
            "format": parsed.format,
            "color": parsed.color,
            "report": parsed.report is not None,
        })
        for profile in profiles:
            runner.add_profile(profile)
        for rule in rules:
            runner.add_rule(rule)
    except Exception as e:
        print(f"Error loading controls: {e}", file=sys.stderr)
        return 2

    if parsed.list:
        print(to_json(groups_to_dict(runner.tests())))
        runner.context.close()
        return 0

    status = runner.run()

    if parsed.report:
        Path(parsed.report).write_text(to_json(runner.report()))
    runner.context.close()

    return status


if __name__ == "__main__":
    sys.exit(main())
