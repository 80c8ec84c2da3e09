from .formatter import ResultFormatter
from .main import entry_point, main

__all__ = ["ResultFormatter", "entry_point", "main"]
