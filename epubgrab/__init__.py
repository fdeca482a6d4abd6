from .downloader import download_book
from .cli import parse_args, settings_from_args, validate_args

__all__ = [
    "download_book",
    "parse_args",
    "settings_from_args",
    "validate_args",
]
