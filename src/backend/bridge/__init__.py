from .base import SignalBridge
from .channel import PushChannel, Subscription
from .factory import BridgeUnavailableError, acquire_bridge, load_bridge_factory
from .stub import StubSignalBridge

__all__ = [
    "SignalBridge",
    "PushChannel",
    "Subscription",
    "BridgeUnavailableError",
    "acquire_bridge",
    "load_bridge_factory",
    "StubSignalBridge",
]
