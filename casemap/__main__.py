"""python -m casemap <root> <case_id> [--out DIR]"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from casemap.core.case_loader import MapCaseLoader
from casemap.core.case_store import DirectoryCaseStore
from casemap.core.errors import MapError
from casemap.utils.logging import LOG_LEVELS, log, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="casemap",
        description="Import a case (PGM + YAML [+ CSV]) and write the editor payload.",
    )
    parser.add_argument("root", help="directory holding one sub-directory per case")
    parser.add_argument("case_id", help="case sub-directory name")
    parser.add_argument("--out", default=".", help="output directory (default: current)")
    parser.add_argument("--log-level", default=None, choices=sorted(LOG_LEVELS),
                        help="console level (default: $CASEMAP_LOG_LEVEL or INFO)")
    parser.add_argument("--log-file", default=None, help="optional rotating log file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(LOG_LEVELS[args.log_level] if args.log_level else None, log_file=args.log_file, force=True)

    loader = MapCaseLoader(DirectoryCaseStore(args.root))
    try:
        payload = loader.load_case(args.case_id)
    except MapError as exc:
        log.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "case.json").write_text(json.dumps(payload.to_json(), indent=2), encoding="utf-8")
    (out_dir / "base.png").write_bytes(payload.base_png)
    log.info("wrote %s and %s", out_dir / "case.json", out_dir / "base.png")
    return 0


if __name__ == "__main__":
    sys.exit(main())
