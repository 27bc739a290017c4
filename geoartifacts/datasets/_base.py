"""
Shared types for the dataset module system.

Every dataset module exposes get_meta() returning a DatasetMeta so the
registry can list providers uniformly.
"""

from dataclasses import dataclass


@dataclass
class DatasetMeta:
    """Metadata describing an external dataset provider."""

    name: str  # e.g. "gadm"
    family: str  # e.g. "admin-boundaries"
    provider: str  # prefix of cache identifiers, e.g. "GADM"
    description: str
    formats: tuple = ()
    source_url: str = ""
    citation: str = ""
    license: str = ""
