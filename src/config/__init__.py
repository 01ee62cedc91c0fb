from .settings import LogLevel, Settings
from .signal_profile import SignalProfileLoader

__all__ = ["LogLevel", "Settings", "SignalProfileLoader"]
