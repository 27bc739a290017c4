"""
geoartifacts: geospatial data sets from public providers as GeoDataFrames.

Each provider adapter downloads a file once into a local cache, resolves
the user's selectors against a catalog or a naming convention and loads
the result with geopandas, rasterio or pandas.

Example::

    from geoartifacts import gadm, inmet_stations, image, naturalearth, geobr
    slovenia = gadm("SVN", depth=1)
    stations = inmet_stations("manual")
    rivers = naturalearth.rivers(scale="1:50")
    rio = geobr.state("RJ")
    strebelle = image("Strebelle")
"""

from geoartifacts.cache_manager import DownloadCache, get_default_cache, set_default_cache
from geoartifacts.datasets import geobr, naturalearth
from geoartifacts.datasets.gadm import dataset as gadm_dataset
from geoartifacts.datasets.gadm import download as gadm_download
from geoartifacts.datasets.gadm import gadm
from geoartifacts.datasets.geostatsimages import get as image
from geoartifacts.datasets.geostatsimages import list_images
from geoartifacts.datasets.inmet import stations as inmet_stations
from geoartifacts.errors import (
    DownloadError,
    GeoArtifactsError,
    InvalidArgument,
    NotFoundError,
    SchemaMismatch,
)

__version__ = "0.4.0"

__all__ = [
    "DownloadCache",
    "DownloadError",
    "GeoArtifactsError",
    "InvalidArgument",
    "NotFoundError",
    "SchemaMismatch",
    "gadm",
    "gadm_dataset",
    "gadm_download",
    "geobr",
    "get_default_cache",
    "image",
    "inmet_stations",
    "list_images",
    "naturalearth",
    "set_default_cache",
]


def __getattr__(name):
    if name == "DATASET_REGISTRY":
        from geoartifacts import datasets
        return datasets.DATASET_REGISTRY
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
