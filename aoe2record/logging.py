import logging
from rich.console import Console
from rich.logging import RichHandler


_logging_configured: bool = False

def configure_logging(debug: bool = False, quiet: bool = False):
    """Send log records to stderr through rich.

    Debug output is limited to aoe2record's own loggers; the decoder logs
    every section offset, which is what you want when chasing a desync."""
    global _logging_configured
    if not _logging_configured:
        _logging_configured = True
        console = Console(stderr=True)
        logging.captureWarnings(True)
        logging.basicConfig(
            level=logging.WARNING if quiet else logging.INFO,
            format="%(name)s: %(message)s" if debug else "%(message)s",
            handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        )
        if debug:
            logging.getLogger("aoe2record").setLevel(logging.DEBUG)
