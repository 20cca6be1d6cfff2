"""
CLI entry point. Parses args and delegates to pipeline.
"""

import sys
from typing import Optional

from .cli import parse_args
from .pipeline import run_pipeline
from .schema import ReportOptions


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    try:
        options = ReportOptions(
            title=args.title,
            heading=args.heading,
            project_root=args.project_root,
            editor_url=args.editor_url,
        )
        run_pipeline(results_path=args.results, output_path=args.output, options=options)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
