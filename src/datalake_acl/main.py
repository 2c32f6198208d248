"""Command-line entrypoint.

Only the dependency check is imported up front so a missing library is
reported by name instead of failing at import time.
"""

from __future__ import annotations

import sys

from datalake_acl.dependencies import ensure_dependencies


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    report = ensure_dependencies()
    if not report.ready:
        for missing in report.missing:
            print(
                f"Missing dependency for {missing.capability}: {', '.join(missing.modules)}",
                file=sys.stderr,
            )
        return 2

    from datalake_acl.cli import run

    return run(argv)


if __name__ == "__main__":
    sys.exit(main())
