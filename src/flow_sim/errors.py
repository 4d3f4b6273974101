"""Exception types raised by the flow-field pipeline."""


class FlowFieldError(Exception):
    """Base class for all flow_sim errors."""


class DegenerateVectorError(FlowFieldError, ValueError):
    """A zero-length vector was asked to take a non-zero magnitude."""


class ConfigError(FlowFieldError, ValueError):
    """Run configuration rejected before any simulation work."""


__all__ = ["FlowFieldError", "DegenerateVectorError", "ConfigError"]
