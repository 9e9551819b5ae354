"""
Harness services: snapshot reads, routing, workers, scheduling and verification.
"""

from .harness import ConsistencyHarness
from .verifier import verify

__all__ = ['ConsistencyHarness', 'verify']
