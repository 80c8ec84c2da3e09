from .launcher import ProcessLauncher

__all__ = ["ProcessLauncher"]
