from __future__ import annotations

import sys
from typing import List, Optional


def cli(argv: Optional[List[str]] = None) -> int:
    try:
        from .main import main  # type: ignore
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Failed to import epub_album.main: {exc}\n")
        return 1

    try:
        code = main(argv)
        return 0 if (code is None or code == 0) else int(code)
    except SystemExit as se:  # argparse (--help, arguments invalides)
        return int(se.code) if isinstance(se.code, int) else 1
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Unhandled error: {exc}\n")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
