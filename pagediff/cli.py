"""
Command-line interface.

Usage:
  pagediff run --config pagediff.yaml
  pagediff compare --old scans/v1 --new scans/v2 --distance 10
  pagediff probe page_a.png page_b.png

Exit status: 0 when the versions match, 1 when differences were found.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .config import PageDiffConfig
from .fingerprint import DEFAULT_ALGORITHM, DEFAULT_HASH_SIZE, HASH_ALGORITHMS, probe
from .pipeline import run_from_config
from .report import render_json, render_text, save_report_pdf
from .utils import configure_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagediff", description="Find missing, inserted, moved and altered pages between two scans.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="Run pagediff using a YAML config.")
    run_p.add_argument("--config", required=True, help="Path to YAML config file.")

    cmp_p = sub.add_parser("compare", help="Compare two versions given on the command line.")
    cmp_p.add_argument("-o", "--old", required=True, help="Old version: image directory or PDF.")
    cmp_p.add_argument("-n", "--new", required=True, help="New version: image directory or PDF.")
    cmp_p.add_argument("-d", "--distance", required=True, type=int, help="Maximum fingerprint distance for a match.")
    cmp_p.add_argument("--format", choices=["text", "json", "pdf"], default="text")
    cmp_p.add_argument("--output", help="Output file (required for pdf; stdout otherwise).")
    cmp_p.add_argument("--band", type=int, default=None, help="Diagonal band for the alignment table.")
    cmp_p.add_argument("--no-relocate", action="store_true", help="Do not pair moved pages.")
    cmp_p.add_argument("--algorithm", choices=sorted(HASH_ALGORITHMS), default=DEFAULT_ALGORITHM)
    cmp_p.add_argument("--hash-size", type=int, default=DEFAULT_HASH_SIZE)
    cmp_p.add_argument("--workers", type=int, default=4)
    cmp_p.add_argument("-v", "--verbose", action="store_true")
    cmp_p.add_argument("--log-file", default=None, help="Also write log records to this file.")

    probe_p = sub.add_parser("probe", help="Print the distance of two images under every hash algorithm.")
    probe_p.add_argument("first")
    probe_p.add_argument("second")
    probe_p.add_argument("--hash-size", type=int, default=DEFAULT_HASH_SIZE)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "run":
        cfg = PageDiffConfig.from_yaml(args.config)
        configure_logging(cfg.runtime.verbose, cfg.runtime.logfile)
        result = run_from_config(cfg)
        return result.report.exit_code()

    if args.cmd == "compare":
        if args.distance < 0:
            parser.error("--distance must be non-negative")
        if args.format == "pdf" and not args.output:
            parser.error("--format pdf requires --output")
        configure_logging(args.verbose, args.log_file)

        cfg = PageDiffConfig.model_validate({
            "project": {"old": args.old, "new": args.new},
            "fingerprint": {"algorithm": args.algorithm, "hash_size": args.hash_size, "workers": args.workers},
            "alignment": {"threshold": args.distance, "band": args.band, "relocate": not args.no_relocate},
            "runtime": {"verbose": args.verbose, "logfile": args.log_file},
        })
        result = run_from_config(cfg, write=False)

        if args.format == "pdf":
            save_report_pdf(result.report, result.old, result.new, args.output)
        else:
            render = render_text if args.format == "text" else render_json
            text = render(result.report, result.old, result.new)
            if args.output:
                with open(args.output, "w", encoding="utf-8") as f:
                    f.write(text)
            else:
                sys.stdout.write(text)
        return result.report.exit_code()

    if args.cmd == "probe":
        configure_logging(False)
        for name, dist in probe(args.first, args.second, hash_size=args.hash_size).items():
            print(f"Algo: {name}, dist: {dist}")
        return 0

    return 2
