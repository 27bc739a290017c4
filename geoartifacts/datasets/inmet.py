"""
INMET weather stations (Brazilian National Institute of Meteorology).

The station list is a JSON array with longitude, latitude and altitude
columns; they become 3D points and every other column is kept as data.
"""

from geoartifacts import config
from geoartifacts.cache_manager import get_default_cache
from geoartifacts.datasets._base import DatasetMeta
from geoartifacts.errors import InvalidArgument
from geoartifacts.loaders import load_records
from geoartifacts.resolver import DatasetQuery, FamilyDescriptor, Resolver, check_choice
from geoartifacts.schemas import InmetStationsSchema, validate_schema
from geoartifacts.tables import points_from_columns

FAMILY = "weather-stations"


def get_meta() -> DatasetMeta:
    return DatasetMeta(
        name="inmet",
        family=FAMILY,
        provider="INMET",
        description="INMET automatic and conventional weather stations",
        formats=("json",),
        source_url="https://portal.inmet.gov.br",
        citation="Instituto Nacional de Meteorologia (INMET), Brazil.",
    )


def inmet_url(query: DatasetQuery) -> str:
    return config.INMET_URL.format(code=config.INMET_KINDS[query.get("kind")]["code"])


DESCRIPTOR = FamilyDescriptor(
    family=FAMILY,
    provider="INMET",
    url_template=inmet_url,
    validators=(check_choice("kind", tuple(config.INMET_KINDS), "station kind"),),
)

resolver = Resolver(DESCRIPTOR)


def _normalise_kind(kind):
    if not isinstance(kind, str):
        raise InvalidArgument(f"station kind must be a string, got {kind!r}")
    return kind.lstrip(":").lower()


def stations(kind="automatic", cache=None):
    """INMET stations of the given kind as a GeoDataFrame of 3D points.

    Parameters
    ----------
    kind : str
        ``"automatic"`` (default) or ``"manual"`` (conventional stations).
    """
    kind = _normalise_kind(kind)
    cache = cache or get_default_cache()
    resolution = resolver.resolve(DatasetQuery.of(FAMILY, kind=kind), cache)
    path = cache.path_for(resolution.identifier, resolution.url)

    df = validate_schema(load_records(path), InmetStationsSchema, "INMET stations")
    label = config.INMET_KINDS[kind]["label"]
    df = df[df[config.INMET_TYPE_COLUMN] == label]
    return points_from_columns(df, config.INMET_COORD_COLUMNS)
