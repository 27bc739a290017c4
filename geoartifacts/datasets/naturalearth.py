"""
Natural Earth map layers.

Layers are looked up in the bundled ``naturalearth.csv`` catalog by scale,
entity and variant. Entity and variant match by substring containment,
exactly as stored (case and punctuation included); when several rows
match, the first in catalog order wins, which is why each entity's plain
layer is listed before its specialised variants.

Each public function maps a short variant token to the catalog substring
through a lookup table (``LAYERS``) instead of chains of comparisons.
"""

from functools import lru_cache

from geoartifacts import config
from geoartifacts.datasets._base import DatasetMeta
from geoartifacts.errors import InvalidArgument
from geoartifacts.loaders import find_data_file, load
from geoartifacts.resolver import DatasetQuery, FamilyDescriptor, Resolver, check_choice
from geoartifacts.catalog import Catalog
from geoartifacts.schemas import NaturalEarthCatalogSchema

FAMILY = "map-layer"

SCALE_CODES = {"1:10": "10m", "1:50": "50m", "1:100": "110m"}

COUNTRIES_ENTITY = "Admin 0 – Countries"
POV_ENTITY = "Admin 0 – Countries point-of-views"

COUNTRY_POV = {
    "isopov": "ISO",
    "toplevel": "top-level-countries",
    "ARG": "Argentina",
    "BDG": "Bangladesh",
    "BRA": "Brazil",
    "CHN": "China",
    "EGY": "Egypt",
    "FRA": "France",
    "DEU": "Germany",
    "GRC": "Greece",
    "IDN": "Indonesia",
    "IND": "India",
    "ISO": "ISO",
    "ISR": "Israel",
    "ITA": "Italy",
    "JPN": "Japan",
    "KOR": "South Korea",
    "MAR": "Morocco",
    "NEP": "Nepal",
    "NLD": "Netherlands",
    "PAK": "Pakistan",
    "POL": "Poland",
    "PRT": "Portugal",
    "PSE": "Palestine",
    "RUS": "Russia",
    "SAU": "Saudi Arabia",
    "ESP": "Spain",
    "SWE": "Sweden",
    "TUR": "Turkey",
    "TWN": "Taiwan",
    "GBR": "United Kingdom",
    "USA": "United States",
    "UKR": "Ukraine",
    "VNM": "Vietnam",
}

# Variant values: a catalog substring, a {scale: substring} mapping ("*"
# for any other scale), or an (entity, substring) pair overriding the
# layer's entity.
LAYERS = {
    "countries": {
        "entity": COUNTRIES_ENTITY,
        "variants": {
            "default": "countries",
            "nolakes": "without boundary lakes",
            **{
                token: (POV_ENTITY, f"countries ({label} POV)")
                for token, label in COUNTRY_POV.items()
            },
        },
    },
    "borders": {
        "entity": "Admin 0 – Boundary Lines",
        "variants": {
            "default": {
                "1:10": "land boundaries",
                "1:50": "land lines",
                "1:100": "country boundaries",
            },
            "mapunit": "map unit lines",
            "maritime": "maritime indicators",
            "maritimechn": "maritime indicators China supplement",
            "pacific": "Pacific grouping lines",
        },
    },
    "states": {
        "entity": "Admin 1 – States, Provinces",
        "variants": {
            "default": "states and provinces",
            "ranks": {"1:10": "as scale ranks", "*": "scale ranks"},
            "ranksislands": {"1:10": "scale ranks with minor islands"},
            "nolakes": "without large lakes",
            "borders": {"1:100": "boundaries", "*": "boundary lines"},
        },
    },
    "counties": {
        "entity": "Admin 2 – Counties",
        "variants": {
            "default": "counties",
            "nolakes": "without large lakes",
            "ranks": "as scale ranks",
            "ranksislands": "scale ranks with minor islands",
        },
    },
    "populated_places": {
        "entity": "Populated Places",
        "variants": {
            "default": "populated places",
            "simple": "simple (less columns)",
        },
    },
    "roads": {
        "entity": "Roads",
        "variants": {"default": "roads", "northamerica": "North America supplement"},
    },
    "railroads": {
        "entity": "Railroads",
        "variants": {"default": "railroads", "northamerica": "North America supplement"},
    },
    "airports": {"entity": "Airports", "variants": {"default": "airports"}},
    "ports": {"entity": "Ports", "variants": {"default": "ports"}},
    "urban_areas": {"entity": "Urban Areas", "variants": {"default": "urban areas"}},
    "us_parks": {
        "entity": "Parks and Protected Lands",
        "variants": {"default": "U.S. national parks"},
    },
    "timezones": {"entity": "Timezones", "variants": {"default": "time zones"}},
    "coastline": {"entity": "Coastline", "variants": {"default": "coastline"}},
    "land": {"entity": "Land", "variants": {"default": "land"}},
    "ocean": {"entity": "Ocean", "variants": {"default": "ocean"}},
    "lakes": {"entity": "Lakes", "variants": {"default": "lakes"}},
    "rivers": {
        "entity": "Rivers",
        "variants": {"default": "rivers and lake centerlines"},
    },
}


def get_meta() -> DatasetMeta:
    return DatasetMeta(
        name="naturalearth",
        family=FAMILY,
        provider="NaturalEarth",
        description="Natural Earth cultural and physical vector layers",
        formats=("shp", "tif"),
        source_url="https://www.naturalearthdata.com",
        citation="Made with Natural Earth. Free vector and raster map data.",
        license="Public domain",
    )


@lru_cache(maxsize=1)
def catalog() -> Catalog:
    """The bundled layer catalog (loaded once per process)."""
    return Catalog.bundled(FAMILY, config.NATURALEARTH_CATALOG,
                           schema=NaturalEarthCatalogSchema, unpack=True)


DESCRIPTOR = FamilyDescriptor(
    family=FAMILY,
    provider="NaturalEarth",
    version=config.NATURALEARTH_VERSION,
    catalog=lambda cache: catalog(),
    exact_keys=(("scale_code", "SCALE"),),
    contains_keys=(("entity", "ENTITY"), ("variant", "VARIANT")),
    unpack=True,
    validators=(check_choice("scale", config.NATURALEARTH_SCALES, "scale"),),
)

resolver = Resolver(DESCRIPTOR)


def _check_scale(scale):
    if scale not in config.NATURALEARTH_SCALES:
        raise InvalidArgument(
            "invalid scale, please use one these: "
            + ", ".join(config.NATURALEARTH_SCALES)
        )


def variant_query(layer, variant, scale):
    """Map a variant token to the (entity, variant substring) pair to look up."""
    entry = LAYERS[layer]
    table = entry["variants"]
    if variant not in table:
        raise InvalidArgument(
            f"invalid variant {variant!r} for {layer}, please use one of: "
            + ", ".join(table)
        )
    entity = entry["entity"]
    value = table[variant]
    if isinstance(value, tuple):
        entity, value = value
    if isinstance(value, dict):
        if scale in value:
            value = value[scale]
        elif "*" in value:
            value = value["*"]
        else:
            raise InvalidArgument(
                f"variant {variant!r} of {layer} is only available at scale "
                + ", ".join(value)
            )
    return entity, value


def validate_variants():
    """Variant tokens whose catalog substring matches no layer.

    Returns a list of ``(layer, variant, scale)`` triples; empty when every
    lookup table entry resolves.
    """
    cat = catalog()
    problems = []
    for layer, entry in LAYERS.items():
        for token, value in entry["variants"].items():
            if isinstance(value, tuple):
                value = value[1]
            scales = [s for s in value if s != "*"] if isinstance(value, dict) else [None]
            for scale in scales:
                entity, substring = variant_query(layer, token, scale or "1:10")
                exact = {"SCALE": SCALE_CODES[scale]} if scale else None
                if not cat.mask(exact, {"ENTITY": entity, "VARIANT": substring}).any():
                    problems.append((layer, token, scale))
    return problems


def get(scale, entity, variant, cache=None, **kwargs):
    """Download and load the first layer matching *entity* and *variant*.

    Parameters
    ----------
    scale : str
        ``"1:10"``, ``"1:50"`` or ``"1:100"``.
    entity, variant : str
        Substrings of the catalog ENTITY and VARIANT columns.
    **kwargs
        Forwarded to the format loader.
    """
    query = DatasetQuery.of(FAMILY, scale=scale, scale_code=SCALE_CODES.get(scale),
                            entity=entity, variant=variant)
    path, _ = resolver.fetch(query, cache)
    return load(find_data_file(path, (".shp", ".tif", ".tiff")), **kwargs)


def _layer(layer, variant, scale, cache, kwargs):
    _check_scale(scale)
    entity, substring = variant_query(layer, variant, scale)
    return get(scale, entity, substring, cache=cache, **kwargs)


# -----------
# PUBLIC API
# -----------


def countries(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Admin 0 countries.

    Variants: ``default``, ``nolakes``, ``isopov``, ``toplevel`` and the
    point-of-view codes in ``COUNTRY_POV`` (``ARG``, ``BRA``, ``CHN``, ...;
    1:10 only).
    """
    return _layer("countries", variant, scale, cache, kwargs)


def borders(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Admin 0 boundary lines.

    Variants: ``default``, ``mapunit``, ``maritime``, ``maritimechn``,
    ``pacific``.
    """
    return _layer("borders", variant, scale, cache, kwargs)


def states(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Admin 1 states and provinces.

    Variants: ``default``, ``ranks``, ``ranksislands`` (1:10), ``nolakes``,
    ``borders``.
    """
    return _layer("states", variant, scale, cache, kwargs)


def counties(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Admin 2 counties (United States, 1:10 only).

    Variants: ``default``, ``nolakes``, ``ranks``, ``ranksislands``.
    """
    return _layer("counties", variant, scale, cache, kwargs)


def populated_places(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Populated places. Variants: ``default``, ``simple``."""
    return _layer("populated_places", variant, scale, cache, kwargs)


def roads(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Roads. Variants: ``default``, ``northamerica``."""
    return _layer("roads", variant, scale, cache, kwargs)


def railroads(variant="default", *, scale="1:10", cache=None, **kwargs):
    """Railroads. Variants: ``default``, ``northamerica``."""
    return _layer("railroads", variant, scale, cache, kwargs)


def airports(*, scale="1:10", cache=None, **kwargs):
    return _layer("airports", "default", scale, cache, kwargs)


def ports(*, scale="1:10", cache=None, **kwargs):
    return _layer("ports", "default", scale, cache, kwargs)


def urban_areas(*, scale="1:10", cache=None, **kwargs):
    return _layer("urban_areas", "default", scale, cache, kwargs)


def us_parks(*, scale="1:10", cache=None, **kwargs):
    return _layer("us_parks", "default", scale, cache, kwargs)


def timezones(*, scale="1:10", cache=None, **kwargs):
    return _layer("timezones", "default", scale, cache, kwargs)


def coastline(*, scale="1:10", cache=None, **kwargs):
    return _layer("coastline", "default", scale, cache, kwargs)


def land(*, scale="1:10", cache=None, **kwargs):
    return _layer("land", "default", scale, cache, kwargs)


def ocean(*, scale="1:10", cache=None, **kwargs):
    return _layer("ocean", "default", scale, cache, kwargs)


def lakes(*, scale="1:10", cache=None, **kwargs):
    return _layer("lakes", "default", scale, cache, kwargs)


def rivers(*, scale="1:10", cache=None, **kwargs):
    return _layer("rivers", "default", scale, cache, kwargs)
