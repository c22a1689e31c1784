"""CLI entry point."""

import sys
import os
from typing import Optional, Sequence

from common.exceptions import ConfigurationError, HCPError
from common.logging_config import setup_logging
from cli.constants import USAGE_TEXT
from cli.parser import ParseError, parse_tokens
from cli.repl import dispatch_command, help_text, repl_loop

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2


def run_once(tokens: Sequence[str]) -> int:
    """
    Run a single command given as argv tokens.

    Returns:
        Process exit code: 0 once the run completed (whatever the per-job
        outcomes), 2 for usage or configuration problems
    """
    if tokens[0] in ("help", "-h", "--help"):
        print(help_text(tokens[1] if len(tokens) > 1 else None))
        return EXIT_OK

    try:
        cmd_obj = parse_tokens(tokens)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE_TEXT, file=sys.stderr)
        return EXIT_CONFIGURATION

    try:
        print(dispatch_command(cmd_obj))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except HCPError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for CLI."""
    args = list(sys.argv[1:] if argv is None else argv)
    log_level = 'DEBUG' if '--debug' in args else os.getenv('LOG_LEVEL', 'INFO')

    logger = setup_logging('cli', log_level=log_level)

    if args[:1] == ['--debug']:
        logger.info("Debug logging enabled")
        args = args[1:]

    if not args:
        logger.info("CLI starting...")
        try:
            repl_loop()
        except Exception as e:
            logger.error(f"CLI error: {e}", exc_info=True)
            raise
        finally:
            logger.info("CLI exiting")
        return

    sys.exit(run_once(args))


if __name__ == "__main__":
    main()
