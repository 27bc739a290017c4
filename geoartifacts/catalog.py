"""
Static metadata catalogs mapping dataset descriptors to download URLs.

A catalog is a small read-only table (a bundled CSV, or a provider's own
CSV index fetched through the download cache). Lookups are conjunctions of
exact-match and substring-containment tests over its columns and always
return rows in catalog order, so ties resolve the same way on every run.
"""

from dataclasses import dataclass, field
from importlib import resources
from numbers import Integral
from typing import Iterator, Mapping, Optional

import pandas as pd

from geoartifacts.errors import NotFoundError
from geoartifacts.logging_config import get_logger
from geoartifacts.schemas import validate_schema

log = get_logger(__name__)


@dataclass(frozen=True)
class CatalogRow:
    """One catalog entry: its match keys, download URL and unpack flag."""

    family: str
    keys: Mapping = field(default_factory=dict)
    url: str = ""
    unpack: bool = False

    def __getitem__(self, key):
        return self.keys[key]

    def get(self, key, default=None):
        return self.keys.get(key, default)


class CatalogLookup:
    """Lazy, restartable sequence of rows matching one predicate."""

    def __init__(self, catalog, index):
        self._catalog = catalog
        self._index = index

    def __iter__(self) -> Iterator[CatalogRow]:
        for idx in self._index:
            yield self._catalog.row(idx)

    def __len__(self):
        return len(self._index)

    def __repr__(self):
        return f"CatalogLookup({self._catalog.family!r}, {len(self)} rows)"


class Catalog:
    """Read-only lookup table for one dataset family.

    Parameters
    ----------
    family : str
        Dataset family the rows belong to.
    frame : pd.DataFrame
        Catalog rows, in the order ties are broken.
    url_column : str
        Column holding the download URL.
    unpack : bool
        Whether files listed in this catalog are archives to extract.
    """

    def __init__(self, family, frame, url_column="URL", unpack=False):
        if url_column not in frame.columns:
            raise KeyError(f"{family} catalog has no {url_column!r} column")
        self.family = family
        self.frame = frame.reset_index(drop=True)
        self.url_column = url_column
        self.unpack = unpack

    def __len__(self):
        return len(self.frame)

    def __repr__(self):
        return f"Catalog({self.family!r}, {len(self)} rows)"

    @classmethod
    def from_csv(cls, family, path, schema=None, url_column="URL",
                 unpack=False, dtype=str):
        frame = pd.read_csv(path, dtype=dtype)
        if schema is not None:
            frame = validate_schema(frame, schema, f"{family} catalog")
        log.debug("Loaded %d catalog rows for %s from %s", len(frame), family, path)
        return cls(family, frame, url_column=url_column, unpack=unpack)

    @classmethod
    def bundled(cls, family, filename, schema=None, url_column="URL", unpack=False):
        """Load a catalog shipped in ``geoartifacts/data``."""
        ref = resources.files("geoartifacts").joinpath("data", filename)
        with resources.as_file(ref) as path:
            return cls.from_csv(family, path, schema=schema,
                                url_column=url_column, unpack=unpack)

    def row(self, idx) -> CatalogRow:
        record = self.frame.loc[idx]
        keys = {k: v for k, v in record.items() if k != self.url_column}
        return CatalogRow(
            family=self.family,
            keys=keys,
            url=record[self.url_column],
            unpack=self.unpack,
        )

    def mask(self, exact: Optional[Mapping] = None,
             contains: Optional[Mapping] = None) -> pd.Series:
        """Boolean mask of rows satisfying every test."""
        keep = pd.Series(True, index=self.frame.index)
        for column, value in (exact or {}).items():
            col = self._column(column)
            if isinstance(value, Integral) and not isinstance(value, bool):
                keep &= pd.to_numeric(col, errors="coerce") == value
            else:
                keep &= col == value
        for column, value in (contains or {}).items():
            col = self._column(column)
            keep &= col.fillna("").astype(str).str.contains(value, regex=False)
        return keep

    def lookup(self, exact=None, contains=None) -> CatalogLookup:
        """Rows matching all ``exact`` equalities and ``contains`` substrings.

        Raises
        ------
        NotFoundError
            No row matches.
        """
        index = self.frame.index[self.mask(exact, contains)]
        if len(index) == 0:
            raise NotFoundError(
                f"No {self.family} catalog rows match "
                f"exact={dict(exact or {})} contains={dict(contains or {})}"
            )
        return CatalogLookup(self, list(index))

    def first(self, exact=None, contains=None) -> CatalogRow:
        """First matching row in catalog order."""
        return next(iter(self.lookup(exact, contains)))

    def latest(self, year_key, exact=None, contains=None) -> CatalogRow:
        """Matching row with the maximum *year_key*; first in order on ties."""
        index = self.lookup(exact, contains)._index
        years = pd.to_numeric(self.frame.loc[index, year_key], errors="coerce")
        return self.row(years.idxmax())

    def values(self, column):
        """Distinct values of *column* in catalog order."""
        return list(dict.fromkeys(self._column(column).dropna()))

    def validate_variants(self, variants: Mapping, column, exact=None):
        """Return the variant tokens whose substring matches no row.

        ``variants`` maps user-facing tokens to catalog substrings, as the
        per-family lookup tables do.
        """
        missing = []
        for token, substring in variants.items():
            if not self.mask(exact, {column: substring}).any():
                missing.append(token)
        return missing

    def _column(self, column):
        if column not in self.frame.columns:
            raise KeyError(f"{self.family} catalog has no {column!r} column")
        return self.frame[column]
