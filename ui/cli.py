from __future__ import annotations

import sys

from patch_runner.main import main as runner_main


def main(argv: list[str] | None = None) -> int:
    """Terminal entry point. Without a tty there is nobody to answer prompts."""

    args = list(sys.argv[1:] if argv is None else argv)
    if not sys.stdin.isatty() and "--non-interactive" not in args:
        args.append("--non-interactive")
    return runner_main(args)


if __name__ == "__main__":
    raise SystemExit(main())
