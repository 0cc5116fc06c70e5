# epub_album/src/epub_album/main.py
"""
Point d'entrée principal pour EPUB Album
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from . import config
from .core.errors import PackageError, user_message_for


def setup_logging(verbose: bool = False):
    """Configure le système de logging."""
    config.ensure_directories()
    logger = logging.getLogger("epub_album")
    logger.setLevel(logging.DEBUG)

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        # Handler pour fichier avec rotation
        logfile = os.path.join(config.LOG_DIR, "epub_album.log")
        handler = RotatingFileHandler(
            logfile,
            maxBytes=config.LOG_MAX_BYTES,
            backupCount=config.LOG_BACKUP_COUNT,
            encoding=config.LOG_ENCODING,
        )
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(threadName)s] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        # Handler pour console
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(console)

    for handler in logger.handlers:
        if not isinstance(handler, RotatingFileHandler):
            handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    return logger


def run_cli(argv: Optional[List[str]] = None) -> int:
    """Lance le mode ligne de commande."""
    from .cli import build_parser, run_command

    args = build_parser().parse_args(argv)
    logger = setup_logging(args.verbose)
    logger.info("Starting EPUB Album CLI (%s)", args.command)

    try:
        run_command(args)
        return 0
    except PackageError as e:
        logger.exception("Error in CLI mode")
        print(f"Erreur: {e.user_message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        logger.exception("Error in CLI mode")
        print(f"Erreur: {user_message_for(e)}", file=sys.stderr)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Point d'entrée principal."""
    return run_cli(argv)


if __name__ == "__main__":
    raise SystemExit(main())
