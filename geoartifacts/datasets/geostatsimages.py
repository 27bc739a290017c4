"""
Training images from the geostatistics literature.

Images are GSLIB grids hosted with the GeoStatsImages collection; the
bundled ``geostatsimages.csv`` lists the known names and the file each
one is stored in.
"""

from functools import lru_cache

from geoartifacts import config
from geoartifacts.cache_manager import get_default_cache
from geoartifacts.catalog import Catalog
from geoartifacts.datasets._base import DatasetMeta
from geoartifacts.errors import InvalidArgument, NotFoundError
from geoartifacts.loaders import load_gslib
from geoartifacts.resolver import DatasetQuery, FamilyDescriptor, Resolver
from geoartifacts.schemas import GeoStatsImagesCatalogSchema

FAMILY = "training-image"


def get_meta() -> DatasetMeta:
    return DatasetMeta(
        name="geostatsimages",
        family=FAMILY,
        provider="GeoStatsImages",
        description="Training images from the geostatistics literature",
        formats=("gslib",),
        source_url="https://github.com/JuliaEarth/GeoStatsImages.jl",
        license="MIT",
    )


@lru_cache(maxsize=1)
def catalog() -> Catalog:
    """Bundled image list with a download URL per file."""
    listed = Catalog.bundled(FAMILY, config.GEOSTATSIMAGES_CATALOG,
                             schema=GeoStatsImagesCatalogSchema, url_column="FILE")
    frame = listed.frame.assign(
        URL=config.GEOSTATSIMAGES_URL + "/" + listed.frame["FILE"]
    )
    return Catalog(FAMILY, frame)


def _check_name(query):
    name = query.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidArgument(f"image name must be a non-empty string, got {name!r}")


DESCRIPTOR = FamilyDescriptor(
    family=FAMILY,
    provider="GeoStatsImages",
    version=config.GEOSTATSIMAGES_VERSION,
    catalog=lambda cache: catalog(),
    exact_keys=(("name", "NAME"),),
    validators=(_check_name,),
)

resolver = Resolver(DESCRIPTOR)


def list_images():
    """Names of the available training images, in catalog order."""
    return catalog().values("NAME")


def get(name, cache=None):
    """Load training image *name* as a grid GeoDataFrame.

    Example::

        strebelle = get("Strebelle")   # columns: facies, geometry
    """
    cache = cache or get_default_cache()
    try:
        resolution = resolver.resolve(DatasetQuery.of(FAMILY, name=name), cache)
    except NotFoundError as exc:
        raise NotFoundError(
            f"unknown image {name!r}, available: {', '.join(list_images())}"
        ) from exc
    return load_gslib(cache.path_for(resolution.identifier, resolution.url))
