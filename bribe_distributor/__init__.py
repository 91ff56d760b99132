"""Bribe Distributor - allocate vote incentives and publish merkle commitments."""

__version__ = "0.1.0"

from .claims.service import ClaimStatusResolver
from .distribution.controller import DistributionController
from .merkle.store import MerkleStore

__all__ = ["ClaimStatusResolver", "DistributionController", "MerkleStore"]
