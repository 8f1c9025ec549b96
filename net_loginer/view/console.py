import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

import questionary
from rich.console import Console
from rich.logging import RichHandler

# Use stderr so rich doesn't conflict with questionary (prompt_toolkit) on stdout
console = Console(stderr=True)

# Use foreground-only colors to avoid background-color clearing issues in some terminals
QUESTIONARY_STYLE = questionary.Style([
    ('qmark', 'fg:cyan bold'),
    ('question', 'bold'),
    ('answer', 'fg:yellow bold'),
    ('pointer', 'fg:cyan bold'),
    ('highlighted', 'fg:cyan bold'),
    ('instruction', 'fg:grey'),
])


def setup_logging(level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """Route the ``net_loginer`` logger tree to the shared console and optionally a file."""
    logger = logging.getLogger('net_loginer')
    logger.setLevel(level.upper())

    # Prevent adding handlers multiple times
    if logger.handlers:
        return logger

    logger.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=True))

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding='utf-8',
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def mask(value: str, keep: int = 2) -> str:
    if not value:
        return ''
    if len(value) <= keep * 2:
        return '*' * len(value)
    return f'{value[:keep]}***{value[-keep:]}'
