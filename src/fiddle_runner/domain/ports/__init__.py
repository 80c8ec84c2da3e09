"""
Domain Ports

Port interfaces defining contracts between layers.
"""

from .channel_port import IChannelPort
from .environment_port import IEnvironmentPort
from .launcher_port import ILauncherPort

__all__ = [
    "IChannelPort",
    "IEnvironmentPort",
    "ILauncherPort",
]
