"""CLI entry point."""

import asyncio
import os
import sys
from pathlib import Path

from common.logging_config import setup_components
from cli.repl import repl_loop

LOG_COMPONENTS = ('cli', 'gallery', 'common')
DEFAULT_LOG_FILE = Path.home() / '.gallery-uploader' / 'gallery-uploader.log'


def main() -> None:
    """Entry point for CLI."""
    debug = '--debug' in sys.argv
    if debug:
        sys.argv.remove('--debug')

    log_level = 'DEBUG' if debug else os.getenv('LOG_LEVEL', 'INFO')
    log_file = Path(os.getenv('GALLERY_LOG_FILE', str(DEFAULT_LOG_FILE))).expanduser()

    logger = setup_components(LOG_COMPONENTS, log_level=log_level, log_file=log_file)[0]
    logger.info(f"CLI starting [log_level={log_level}]")

    try:
        asyncio.run(repl_loop())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
