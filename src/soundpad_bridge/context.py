"""Wiring of the store, control channel, health monitor and coordinator."""

from dataclasses import dataclass
from pathlib import Path

from soundpad_bridge.config import (
    DEFAULT_TIMINGS,
    Timings,
    resolve_channel_address,
    resolve_executable,
    resolve_process_name,
    resolve_soundlist_path,
)
from soundpad_bridge.core.control.channel import ControlChannel
from soundpad_bridge.core.control.health import ConnectionHealthMonitor
from soundpad_bridge.core.lifecycle.coordinator import LifecycleCoordinator
from soundpad_bridge.core.lifecycle.process import ProcessController
from soundpad_bridge.store import SoundlistStore


@dataclass
class BridgeContext:
    store: SoundlistStore
    channel: ControlChannel
    monitor: ConnectionHealthMonitor
    coordinator: LifecycleCoordinator


def create_context(
    *,
    soundlist: Path | None = None,
    executable: Path | None = None,
    channel_address: str | None = None,
    process_name: str | None = None,
    timings: Timings = DEFAULT_TIMINGS,
    reject_when_busy: bool = False,
) -> BridgeContext:
    """Build a context from explicit values, falling back to the environment."""
    store = SoundlistStore(soundlist or resolve_soundlist_path())
    channel = ControlChannel(
        channel_address or resolve_channel_address(),
        request_timeout=timings.request_timeout,
        probe_timeout=timings.probe_timeout,
    )
    monitor = ConnectionHealthMonitor(channel.probe, ttl=timings.health_cache_ttl)
    # Every command round trip refreshes the cached liveness.
    channel.on_state = monitor.record
    process = ProcessController(
        executable or resolve_executable(),
        process_name or resolve_process_name(),
        presence_timeout=timings.presence_check_timeout,
    )
    coordinator = LifecycleCoordinator(
        store, process, monitor, timings=timings, reject_when_busy=reject_when_busy
    )
    return BridgeContext(store=store, channel=channel, monitor=monitor, coordinator=coordinator)
