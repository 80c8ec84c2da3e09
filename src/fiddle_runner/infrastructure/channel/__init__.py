from .shared_channel import SharedChannel

__all__ = ["SharedChannel"]
