"""
Punk API Module.

Provides the async HTTP fetch collaborator for the beer pipeline.
"""

from .client import PunkApiClient

__all__ = ["PunkApiClient"]
