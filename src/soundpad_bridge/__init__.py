"""Remote editing and lifecycle control for the Soundpad sound board."""

from soundpad_bridge.context import BridgeContext, create_context
from soundpad_bridge.core.control.channel import ControlChannel
from soundpad_bridge.core.control.health import ConnectionHealthMonitor
from soundpad_bridge.core.lifecycle.coordinator import LifecycleCoordinator, LifecycleState
from soundpad_bridge.core.lifecycle.process import ProcessController
from soundpad_bridge.protocols import ProcessControllerProtocol, SoundlistStoreProtocol
from soundpad_bridge.store import SoundlistStore

__all__ = [
    "BridgeContext",
    "ConnectionHealthMonitor",
    "ControlChannel",
    "LifecycleCoordinator",
    "LifecycleState",
    "ProcessController",
    "ProcessControllerProtocol",
    "SoundlistStore",
    "SoundlistStoreProtocol",
    "create_context",
]
