"""Exception types shared across the simulator."""


class JaxSpotError(Exception):
    """Base class for simulator errors."""


class PriceFeedError(JaxSpotError):
    """A price snapshot could not be obtained. The tick is skipped."""


class PolicyValidationError(JaxSpotError, ValueError):
    """A policy edit was rejected before reaching persisted state."""


class StateStoreError(JaxSpotError):
    """A persisted record could not be decoded."""
