"""CLI logging setup: simple %(message)s format for standalone commands."""

import logging
import sys

from n8ndock.redact import SecretRedactingFilter


def setup_cli_logging():
    """Configure root logger with plain message format for CLI commands.

    Produces output identical to print(). The redaction filter sits on the
    handler so records propagated from module loggers are scrubbed too.
    """
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
