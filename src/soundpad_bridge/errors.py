"""Exceptions raised by soundpad-bridge."""


class SoundboardError(Exception):
    """Base class for all soundpad-bridge errors."""


class PreconditionError(SoundboardError):
    """A mutation cannot start: nothing was stopped or relaunched."""


class CoordinatorBusyError(SoundboardError):
    """Another mutation is in flight and the coordinator rejects instead of queueing."""


class ControlChannelError(SoundboardError):
    """The control channel could not be reached or returned nothing."""
