"""
Core Module - Foundational Components

Provides:
- SpectralSurface (dense grid-shaped arrays)
- GridGeometry (Cartesian grid metadata)
- Canonical JSON serialization and hashing
"""

from .canonical_json import canonical_dumps, canonical_hash
from .geometry import GridGeometry
from .surface import SpectralSurface

__all__ = [
    'canonical_dumps',
    'canonical_hash',
    'GridGeometry',
    'SpectralSurface',
]
