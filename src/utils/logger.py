import logging

from rich.logging import RichHandler

from utils import config


class PaddedNameFormatter(logging.Formatter):
    """Pads logger names to the widest name seen so far, so messages line up."""

    width = 12

    def format(self, record):
        PaddedNameFormatter.width = max(PaddedNameFormatter.width, len(record.name))
        record.name = record.name.ljust(PaddedNameFormatter.width)
        return super().format(record)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through RichHandler. DEBUG env var lowers the level.
    """
    logger = logging.getLogger(name or "shop")
    level = logging.DEBUG if config.DEBUG else logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(PaddedNameFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(level)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
