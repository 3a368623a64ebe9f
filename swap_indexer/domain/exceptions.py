from __future__ import annotations


class DomainError(Exception):
    """Base for indexer domain errors."""


class ChainConfigurationError(DomainError):
    """Chain configuration is unusable; never retried."""


class InvalidFactoryAddressError(ChainConfigurationError):
    """Factory address is zero or not a valid address."""


class ChainConnectionError(DomainError):
    """RPC endpoint unreachable or serving a different chain."""


class CheckpointRegressionError(DomainError):
    """Attempt to move a checkpoint backwards."""


class SwapHarvestError(DomainError):
    """Swap log query for a pool window failed."""


class VolumeInputError(DomainError):
    """Structurally invalid input for volume aggregation."""
