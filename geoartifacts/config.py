"""
Centralized configuration for geoartifacts.

Provider base URLs, enumerations of legal selector values, cache location,
and network defaults are defined here. Environment variables are read once
at import time; nothing in the package writes to ``os.environ``.
"""

import os

# ─── CACHE ───────────────────────────────────────────────────────────────
# Downloaded resources live under one user-local root shared by all
# adapters and all processes. Entries are never expired.
DEFAULT_CACHE_DIR = os.path.join(
    os.path.expanduser("~"), ".cache", "geoartifacts"
)
CACHE_DIR = os.environ.get("GEOARTIFACTS_CACHE_DIR") or DEFAULT_CACHE_DIR

# Marker written after a download completes; an entry without it is a
# half-finished download and gets fetched again.
CACHE_META_SUFFIX = ".meta.json"


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


# Non-interactive acceptance of first-time downloads.
ALWAYS_ACCEPT = _env_flag("GEOARTIFACTS_ALWAYS_ACCEPT", True)

# ─── NETWORK ─────────────────────────────────────────────────────────────
REQUEST_TIMEOUT = 60  # seconds per request
MAX_RETRIES = 3
BACKOFF_FACTOR = 0.5
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
CHUNK_SIZE = 1024 * 256
USER_AGENT = "geoartifacts/0.4"

# ─── GADM ────────────────────────────────────────────────────────────────
# https://gadm.org; 4.1 is the current release.
GADM_VERSIONS = ("4.1", "4.0", "3.6", "2.8")
GADM_DEFAULT_VERSION = "4.1"
GADM_LEGACY_URL = "https://biogeo.ucdavis.edu/data/gadm2.8/gpkg"
GADM_URL = "https://geodata.ucdavis.edu/gadm/gadm{version}/gpkg"
GADM_FILENAMES = {
    "4.1": "gadm41_{country}.gpkg",
    "4.0": "gadm40_{country}.gpkg",
    "3.6": "gadm36_{country}_gpkg.zip",
    "2.8": "{country}_adm_gpkg.zip",
}
# Older releases ship the GeoPackage inside a zip archive.
GADM_ZIPPED_VERSIONS = ("3.6", "2.8")
ISO3_PATTERN = r"^[A-Z]{3}$"

# ─── INMET ───────────────────────────────────────────────────────────────
# Brazilian National Institute of Meteorology station catalogue.
INMET_URL = "https://apitempo.inmet.gov.br/estacoes/{code}"
INMET_KINDS = {
    "automatic": {"code": "T", "label": "Automatica"},
    "manual": {"code": "M", "label": "Convencional"},
}
INMET_TYPE_COLUMN = "TP_ESTACAO"
INMET_COORD_COLUMNS = ["VL_LONGITUDE", "VL_LATITUDE", "VL_ALTITUDE"]

# ─── NATURAL EARTH ───────────────────────────────────────────────────────
NATURALEARTH_SCALES = ("1:10", "1:50", "1:100")
NATURALEARTH_DEFAULT_SCALE = "1:10"
NATURALEARTH_CATALOG = "naturalearth.csv"
NATURALEARTH_VERSION = "5.1.1"

# ─── GEOBR ───────────────────────────────────────────────────────────────
# IPEA publishes a CSV index of every geobr file; the index is fetched
# through the download cache like any other resource.
GEOBR_VERSION = "1.7.0"
GEOBR_METADATA_URL = (
    "http://www.ipea.gov.br/geobr/metadata/metadata_{version}_gpkg.csv"
)
GEOBR_AMC_YEARS = (
    1872, 1900, 1911, 1920, 1933, 1940, 1950,
    1960, 1970, 1980, 1991, 2000, 2010,
)

# ─── GEOSTATS IMAGES ─────────────────────────────────────────────────────
GEOSTATSIMAGES_CATALOG = "geostatsimages.csv"
GEOSTATSIMAGES_URL = (
    "https://raw.githubusercontent.com/JuliaEarth/GeoStatsImages.jl/master/data"
)
GEOSTATSIMAGES_VERSION = "master"

# ─── GEOMETRY ────────────────────────────────────────────────────────────
DEFAULT_CRS = "EPSG:4326"
DECIMATE_MIN_VERTICES = 3
DECIMATE_MAXITER = 10
