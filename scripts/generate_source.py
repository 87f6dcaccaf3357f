#!/usr/bin/env python3
"""
Decay Source Builder - Source Generator (CLI)

This script turns time steps of a FISPACT-II JSON inventory into decay
radiation sources.

Why it exists
-------------
- The Streamlit app is great for looking at one step interactively.
- For full calculations (many steps, several output formats, MCNP decks)
  the command line is faster and reproducible.

Step selection (e.g. 5 steps in the file)
-----------------------------------------
  1        => [1]
  0-2      => [0, 1, 2]
  "1 3 4"  => [1, 3, 4]
  all      => [0, 1, 2, 3, 4]   (also the default)

Radiation types
---------------
  alpha, beta-plus, beta-minus, gamma (gamma + x-ray), electron, x-ray

Output
------
For each selected step with decay data:
  - <output>_<n>.txt   (--text, table of lines)
  - <output>_<n>.json  (--json)
  - <output>_<n>.csv   (--csv)
  - <output>_<n>.png   (--png, line spectrum plot)
  - <output>_<n>.i     (--mcnp, SDEF distribution cards)

How to run
------
python scripts/generate_source.py inventory.json 2 --rad gamma --mcnp --text
python scripts/generate_source.py inventory.json          # summary only

Notes
-----
- Pre-built decay data are used by default; --fetch queries the IAEA API.
- Records with unobserved energy or intensity are omitted.
- A step that fails (no connection, corrupt data) is reported and skipped;
  the exit status is 1 if any step failed.

License: MIT
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# -------------------------------------------------------------------------
# Make imports robust:
# Add the repository root to sys.path so `import decay_source` works
# regardless of how/where the script is invoked.
# -------------------------------------------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Now we can import the package modules safely.
from decay_source.config import DEFAULTS  # noqa: E402
from decay_source.data import inventory_summary, load_inventory_json  # noqa: E402
from decay_source.errors import ParseError  # noqa: E402
from decay_source.indices import resolve  # noqa: E402
from decay_source.nuclides import parse_radiation, parse_sort  # noqa: E402
from decay_source.pipeline import FORMATS, RunOptions, run_steps  # noqa: E402
from decay_source.providers import make_provider  # noqa: E402


def _err(msg: str, code: int = 2) -> None:
    """Print an error message to stderr and exit with a non-zero code."""
    print(f"ERROR: {msg}", file=sys.stderr)
    raise SystemExit(code)


def init_logging(verbose: int, quiet: bool) -> None:
    """INFO by default, DEBUG for this package with -v, DEBUG everywhere with -vv."""
    if quiet:
        level = logging.ERROR
    elif verbose > 0:
        level = logging.DEBUG
    else:
        level = logging.INFO
    fmt = "%(levelname)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(level=logging.DEBUG if verbose > 1 else logging.WARNING, format=fmt)
    logging.getLogger("decay_source").setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Convert FISPACT-II steps to decay sources.")
    ap.add_argument("path", type=Path, help="FISPACT-II JSON inventory.")
    ap.add_argument("idx", nargs="?", default=DEFAULTS["steps"], help="Step indices: 1, 0-2, '1 3 4' or all.")

    data = ap.add_argument_group("Data options")
    data.add_argument("-r", "--rad", default=DEFAULTS["radiation"], help="Radiation type (default gamma).")
    data.add_argument("-s", "--sort", default=DEFAULTS["sort"], help="Sort by energy or intensity.")
    data.add_argument("--fetch", action="store_true", help="Query the IAEA API instead of the local table.")
    data.add_argument("--timeout", type=float, default=DEFAULTS["timeout_s"], help="IAEA request timeout (s).")
    data.add_argument("--table", type=Path, default=DEFAULTS["decay_table"], help="Local decay table CSV.")

    out = ap.add_argument_group("Output files")
    out.add_argument("-o", "--output", default=DEFAULTS["output"], help="Output prefix (default 'step').")
    out.add_argument("-t", "--text", action="store_true", help="Text table of decay lines.")
    out.add_argument("-j", "--json", action="store_true", help="JSON list of nuclides and lines.")
    out.add_argument("--csv", action="store_true", help="CSV spectrum.")
    out.add_argument("--png", action="store_true", help="PNG plot of the line spectrum.")
    out.add_argument("-m", "--mcnp", action="store_true", help="MCNP SDEF distribution cards.")
    out.add_argument("-i", "--id", type=int, default=DEFAULTS["start_id"], help="First MCNP distribution number.")
    out.add_argument("--workers", type=int, default=1, help="Steps processed in parallel.")

    ap.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v, -vv).")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only log errors.")
    return ap


def print_summary(steps) -> None:
    df = inventory_summary(steps)
    print()
    if df.empty:
        print("No steps found in inventory.")
    else:
        print(df.to_string(index=False, float_format=lambda x: f"{x:.2e}"))
    print()


def main() -> None:
    args = build_parser().parse_args()
    init_logging(args.verbose, args.quiet)
    log = logging.getLogger("decay_source.cli")

    try:
        radiation = parse_radiation(args.rad)
        sort_key = parse_sort(args.sort)
    except ValueError as e:
        _err(str(e))

    try:
        steps = load_inventory_json(args.path)
    except (OSError, ValueError) as e:
        _err(f"Failed to read inventory '{args.path}': {e}")

    print_summary(steps)

    formats = tuple(fmt for fmt in FORMATS if getattr(args, fmt))
    if not formats:
        log.debug("No outputs requested")
        return

    try:
        indices = resolve(args.idx, len(steps))
    except ParseError as e:
        _err(str(e))

    if not indices:
        log.info("'%s' selects no steps in the expected 0-%d range", args.idx, len(steps) - 1)
        return
    log.debug("Valid steps: %s", indices)

    try:
        provider = make_provider(args.fetch, table_path=args.table, timeout_s=args.timeout)
    except (OSError, ValueError) as e:
        _err(f"Cannot load decay data: {e}")

    options = RunOptions(
        radiation=radiation,
        sort_key=sort_key,
        start_id=args.id,
        formats=formats,
        output=args.output,
    )
    results = run_steps(steps, indices, provider, options, workers=args.workers)

    created = sum(len(r.written) for r in results)
    empty = [r.index for r in results if r.status == "empty"]
    failed = [r.index for r in results if r.failed]
    print(f"Source generation completed. Files: {created}, Empty steps: {empty}, Failed steps: {failed}.")

    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
