from .run_fiddle import RunFiddleCommand, run_fiddle

__all__ = ["RunFiddleCommand", "run_fiddle"]
