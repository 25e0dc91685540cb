from .setup import configure_logging
