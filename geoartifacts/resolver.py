"""
Generic dataset resolver driven by per-family descriptors.

Every provider follows the same shape: validate the user's selectors,
turn them into either a catalog query or a URL built from a naming
template, and derive a stable cache identifier from the result. The
differences between providers live in a ``FamilyDescriptor`` record, not in
code, and ``Resolver`` is the only place that walks the steps.
"""

import re
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Callable, Mapping, Optional, Union

from geoartifacts.cache_manager import get_default_cache, make_identifier
from geoartifacts.catalog import Catalog, CatalogRow
from geoartifacts.errors import InvalidArgument
from geoartifacts.logging_config import get_logger

log = get_logger(__name__)

FAMILIES = (
    "admin-boundaries",
    "weather-stations",
    "map-layer",
    "statistical-area",
    "training-image",
)


@dataclass(frozen=True)
class DatasetQuery:
    """Immutable description of one dataset request."""

    family: str
    selectors: tuple = ()

    def __post_init__(self):
        if self.family not in FAMILIES:
            raise InvalidArgument(f"unknown dataset family {self.family!r}")

    @classmethod
    def of(cls, family, **selectors):
        return cls(family, tuple(sorted(selectors.items())))

    def get(self, name, default=None):
        for key, value in self.selectors:
            if key == name:
                return value
        return default

    def as_dict(self):
        return dict(self.selectors)


@dataclass(frozen=True)
class Resolution:
    """Where a query's data lives and how to cache and load it."""

    url: str
    identifier: str
    unpack: bool = False
    options: Mapping = field(default_factory=dict)
    row: Optional[CatalogRow] = None


@dataclass(frozen=True)
class FamilyDescriptor:
    """Declarative configuration for one dataset family.

    ``exact_keys`` and ``contains_keys`` are ``(selector, column)`` pairs;
    selectors that are None are left out of the catalog query. Exactly one
    of ``catalog`` (a callable taking the download cache) and
    ``url_template`` (a callable taking the query) must be set.
    """

    family: str
    provider: str
    version: str = ""
    catalog: Optional[Callable] = None
    url_template: Optional[Callable] = None
    exact_keys: tuple = ()
    contains_keys: tuple = ()
    year_key: Optional[str] = None
    year_selector: str = "year"
    unpack: Union[bool, Callable] = False
    validators: tuple = ()

    def __post_init__(self):
        if (self.catalog is None) == (self.url_template is None):
            raise ValueError(
                f"{self.family}: exactly one of catalog / url_template required"
            )


class Resolver:
    """Resolve queries of one family to a URL and cache identifier."""

    def __init__(self, descriptor: FamilyDescriptor):
        self.descriptor = descriptor

    def __repr__(self):
        return f"Resolver({self.descriptor.family!r})"

    def validate(self, query: DatasetQuery):
        if query.family != self.descriptor.family:
            raise InvalidArgument(
                f"{self.descriptor.family} resolver got a {query.family} query"
            )
        for check in self.descriptor.validators:
            check(query)

    def resolve(self, query: DatasetQuery, cache=None) -> Resolution:
        """Validate *query* and find its download URL.

        Validation happens before the catalog is touched, so invalid
        selectors never cause network access.
        """
        self.validate(query)
        d = self.descriptor
        version = query.get("version") or d.version
        unpack = d.unpack(query) if callable(d.unpack) else d.unpack

        if d.url_template is not None:
            url = d.url_template(query)
            row = None
        else:
            catalog = d.catalog(cache or get_default_cache())
            row = self.select(catalog, query)
            url = row.url
            unpack = unpack or row.unpack

        resolution = Resolution(
            url=url,
            identifier=make_identifier(d.provider, version, url),
            unpack=unpack,
            options={k: v for k, v in query.selectors if k not in ("version",)},
            row=row,
        )
        log.debug("Resolved %s -> %s [%s]", query, url, resolution.identifier)
        return resolution

    def select(self, catalog: Catalog, query: DatasetQuery) -> CatalogRow:
        """Reduce the catalog to one row for *query*.

        Year omitted: the latest year among the matches. Otherwise the
        first match in catalog order.
        """
        d = self.descriptor
        exact = {col: query.get(sel) for sel, col in d.exact_keys
                 if query.get(sel) is not None}
        contains = {col: query.get(sel) for sel, col in d.contains_keys
                    if query.get(sel) is not None}
        if d.year_key is not None:
            year = query.get(d.year_selector)
            if year is None:
                return catalog.latest(d.year_key, exact, contains)
            exact[d.year_key] = year
        return catalog.first(exact, contains)

    def fetch(self, query: DatasetQuery, cache=None):
        """Resolve *query* and make sure its file is on disk.

        Returns
        -------
        tuple[str, Resolution]
            Cache entry directory and the resolution that produced it.
        """
        cache = cache or get_default_cache()
        resolution = self.resolve(query, cache)
        path = cache.ensure_cached(resolution.identifier, resolution.url,
                                   unpack=resolution.unpack)
        return path, resolution


# ── validator factories ─────────────────────────────────────────────────


def check_choice(selector, allowed, label=None):
    """Selector must be one of *allowed*."""
    label = label or selector

    def check(query):
        value = query.get(selector)
        if value not in allowed:
            raise InvalidArgument(
                f"invalid {label} {value!r}, please use one of: "
                + ", ".join(str(a) for a in allowed)
            )

    return check


def check_pattern(selector, pattern, message):
    """Selector must be a string matching regex *pattern*."""
    regex = re.compile(pattern)

    def check(query):
        value = query.get(selector)
        if not isinstance(value, str) or not regex.match(value):
            raise InvalidArgument(f"{message}: {value!r}")

    return check


def check_year(selector="year"):
    """Selector must be None (latest) or an integer year/date."""

    def check(query):
        value = query.get(selector)
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, Integral):
            raise InvalidArgument(f"{selector} must be an integer, got {value!r}")

    return check


# ── selector helpers ────────────────────────────────────────────────────


def split_code(value):
    """Disambiguate a code selector by type.

    Numbers are numeric codes, strings are abbreviations; both are
    returned as ``(code, abbrev)`` with the unused slot None.
    """
    if value is None:
        return None, None
    if isinstance(value, bool):
        raise InvalidArgument(f"code must be a number or a string, got {value!r}")
    if isinstance(value, Integral):
        return int(value), None
    if isinstance(value, Real):
        if float(value).is_integer():
            return int(value), None
        raise InvalidArgument(f"numeric code must be integral, got {value!r}")
    if isinstance(value, str):
        return None, value
    raise InvalidArgument(f"code must be a number or a string, got {value!r}")


def admin_level(subregions, depth):
    """Hierarchy level queried: explicit subregion names plus depth."""
    if isinstance(depth, bool) or not isinstance(depth, Integral) or depth < 0:
        raise InvalidArgument(f"depth must be a non-negative integer, got {depth!r}")
    return len(subregions) + depth


def subregion_filters(subregions, column_template="NAME_{level}"):
    """Positional ``(column, name)`` filters: name i applies to level i."""
    return [
        (column_template.format(level=level), name)
        for level, name in enumerate(subregions, start=1)
    ]
