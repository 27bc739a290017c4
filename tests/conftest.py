"""
Shared fixtures for geoartifacts tests.

No test in the default run touches the network: a fake requests session
serves fixture bytes by URL and records every call, and small synthetic
GeoPackages, shapefile archives, GeoTIFFs and GSLIB grids stand in for the
provider files.
"""

import io
import json
import os
import tempfile
import zipfile

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
import rasterio
import requests
from rasterio.transform import from_bounds
from shapely.geometry import box

from geoartifacts import config
from geoartifacts.cache_manager import DownloadCache, set_default_cache


# ---------------------------------------------------------------------------
# Fake HTTP layer
# ---------------------------------------------------------------------------


class FakeResponse:
    """Minimal stand-in for requests.Response in streaming mode."""

    def __init__(self, url, status_code=200, content=b""):
        self.url = url
        self.status_code = status_code
        self.content = content
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(
                f"{self.status_code} Error for url: {self.url}"
            )

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Serves ``routes`` (url -> bytes, status code, or exception instance).

    Unknown URLs answer 404. Every requested URL is appended to ``calls``.
    """

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, stream=False, timeout=None):
        self.calls.append(url)
        target = self.routes.get(url, 404)
        if isinstance(target, BaseException):
            raise target
        if isinstance(target, int):
            return FakeResponse(url, status_code=target)
        if isinstance(target, str):
            target = target.encode("utf-8")
        return FakeResponse(url, content=target)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory(prefix="geoartifacts_test_") as d:
        yield d


@pytest.fixture
def routes():
    return {}


@pytest.fixture
def session(routes):
    return FakeSession(routes)


@pytest.fixture
def cache(tmp_dir, session):
    return DownloadCache(root=os.path.join(tmp_dir, "cache"), session=session,
                         accept=True)


@pytest.fixture(autouse=True)
def _isolated_default_cache(tmp_dir, cache):
    """Route every adapter call without an explicit cache to the fake one."""
    previous = set_default_cache(cache)
    yield
    set_default_cache(previous)


# ---------------------------------------------------------------------------
# File builders
# ---------------------------------------------------------------------------


def _read_bytes(path):
    with open(path, "rb") as f:
        return f.read()


def _gpkg_bytes(tmp_dir, name, layers):
    """Write *layers* (layer name -> GeoDataFrame) into one GeoPackage."""
    path = os.path.join(tmp_dir, "build", name)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    for layer, gdf in layers.items():
        gdf.to_file(path, layer=layer, driver="GPKG")
    return _read_bytes(path)


def _zip_bytes(files):
    """Zip archive holding ``{archive name: bytes}``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def _shapefile_zip_bytes(tmp_dir, stem, gdf):
    """Zip of every sidecar file of a shapefile named *stem*."""
    folder = os.path.join(tmp_dir, "build", stem)
    os.makedirs(folder, exist_ok=True)
    gdf.to_file(os.path.join(folder, f"{stem}.shp"))
    return _zip_bytes({
        name: _read_bytes(os.path.join(folder, name))
        for name in sorted(os.listdir(folder))
    })


def _write_raster(path, data, transform):
    """Helper: write a 2D float32 array as a single-band GeoTIFF."""
    meta = {
        "driver": "GTiff",
        "height": data.shape[0],
        "width": data.shape[1],
        "count": 1,
        "dtype": "float32",
        "crs": "EPSG:4326",
        "transform": transform,
        "nodata": np.nan,
    }
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with rasterio.open(path, "w", **meta) as dst:
        dst.write(data.astype("float32"), 1)
    return path


# ---------------------------------------------------------------------------
# Synthetic GADM country "TST": 2 provinces, 4 districts on a 4x4 square
# ---------------------------------------------------------------------------

GADM_TST_URL = "https://geodata.ucdavis.edu/gadm/gadm4.1/gpkg/gadm41_TST.gpkg"
GADM_TST_ZIP_URL = "https://geodata.ucdavis.edu/gadm/gadm3.6/gpkg/gadm36_TST_gpkg.zip"


def gadm_levels():
    crs = "EPSG:4326"
    level0 = gpd.GeoDataFrame(
        {"GID_0": ["TST"], "NAME_0": ["Testland"]},
        geometry=[box(0, 0, 4, 4)], crs=crs,
    )
    level1 = gpd.GeoDataFrame(
        {
            "GID_0": ["TST", "TST"],
            "NAME_1": ["North", "South"],
        },
        geometry=[box(0, 2, 4, 4), box(0, 0, 4, 2)], crs=crs,
    )
    level2 = gpd.GeoDataFrame(
        {
            "GID_0": ["TST"] * 4,
            "NAME_1": ["North", "North", "South", "South"],
            "NAME_2": ["Northwest", "Northeast", "Southwest", "Southeast"],
        },
        geometry=[box(0, 2, 2, 4), box(2, 2, 4, 4), box(0, 0, 2, 2), box(2, 0, 4, 2)],
        crs=crs,
    )
    return [level0, level1, level2]


@pytest.fixture
def gadm_routes(routes, tmp_dir):
    """Serve TST for GADM 4.1 (plain GeoPackage) and 3.6 (zipped)."""
    levels = gadm_levels()
    routes[GADM_TST_URL] = _gpkg_bytes(
        tmp_dir, "gadm41_TST.gpkg",
        {f"ADM_ADM_{i}": gdf for i, gdf in enumerate(levels)},
    )
    legacy = _gpkg_bytes(
        tmp_dir, "gadm36_TST.gpkg",
        {f"gadm36_TST_{i}": gdf for i, gdf in enumerate(levels)},
    )
    routes[GADM_TST_ZIP_URL] = _zip_bytes({"gadm36_TST.gpkg": legacy})
    return routes


# ---------------------------------------------------------------------------
# INMET station lists
# ---------------------------------------------------------------------------

INMET_AUTOMATIC_URL = config.INMET_URL.format(code="T")
INMET_MANUAL_URL = config.INMET_URL.format(code="M")


def _station(code, name, kind, lon, lat, alt):
    # Coordinates arrive as strings from the provider.
    return {
        "CD_ESTACAO": code,
        "DC_NOME": name,
        "TP_ESTACAO": kind,
        "VL_LONGITUDE": lon,
        "VL_LATITUDE": lat,
        "VL_ALTITUDE": alt,
        "SG_ESTADO": "DF",
    }


@pytest.fixture
def inmet_routes(routes):
    automatic = [
        _station("A001", "BRASILIA", "Automatica", "-47.92583332", "-15.78944444", "1160.96"),
        _station("A002", "GOIANIA", "Automatica", "-49.22027777", "-16.64277777", "770"),
        _station("83377", "BRASILIA", "Convencional", "-47.92583332", "-15.78944444", "1159.54"),
    ]
    manual = [
        _station("83377", "BRASILIA", "Convencional", "-47.92583332", "-15.78944444", "1159.54"),
        _station("82024", "BOA VISTA", "Convencional", "-60.6494", "2.8208", "83"),
    ]
    routes[INMET_AUTOMATIC_URL] = json.dumps(automatic)
    routes[INMET_MANUAL_URL] = json.dumps(manual)
    return routes


# ---------------------------------------------------------------------------
# Natural Earth
# ---------------------------------------------------------------------------

NE_COUNTRIES_URL = "https://naciscdn.org/naturalearth/10m/cultural/ne_10m_admin_0_countries.zip"


@pytest.fixture
def naturalearth_routes(routes, tmp_dir):
    countries = gpd.GeoDataFrame(
        {"ADMIN": ["Alpha", "Beta", "Gamma"], "ISO_A3": ["ALP", "BET", "GAM"]},
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), box(2, 0, 3, 1)],
        crs="EPSG:4326",
    )
    routes[NE_COUNTRIES_URL] = _shapefile_zip_bytes(
        tmp_dir, "ne_10m_admin_0_countries", countries
    )
    return routes


# ---------------------------------------------------------------------------
# geobr: metadata index plus per-state and whole-country files
# ---------------------------------------------------------------------------

GEOBR_BASE = "https://www.ipea.gov.br/geobr/data_gpkg"
GEOBR_METADATA = config.GEOBR_METADATA_URL.format(version=config.GEOBR_VERSION)

GEOBR_FILES = {
    "states_2010": f"{GEOBR_BASE}/state/2010/states_2010.gpkg",
    "states_2020": f"{GEOBR_BASE}/state/2020/states_2020.gpkg",
    "muni_rj_2010": f"{GEOBR_BASE}/municipality/2010/33municipalities_2010.gpkg",
    "muni_rj_2020": f"{GEOBR_BASE}/municipality/2020/33municipalities_2020.gpkg",
    "muni_sp_2020": f"{GEOBR_BASE}/municipality/2020/35municipalities_2020.gpkg",
    "muni_all_2020": f"{GEOBR_BASE}/municipality/2020/municipalities_2020.gpkg",
    "regions_2020": f"{GEOBR_BASE}/regions/2020/regions_2020.gpkg",
    "intermediate_2019": f"{GEOBR_BASE}/intermediate_regions/2019/intermediate_regions_2019.gpkg",
    "amc_1970_2000": f"{GEOBR_BASE}/amc/1970/amc_1970_2000.gpkg",
    "amc_1970_2010": f"{GEOBR_BASE}/amc/1970/amc_1970_2010.gpkg",
}

GEOBR_INDEX = [
    ("state", 2010, "all", GEOBR_FILES["states_2010"], ""),
    ("state", 2020, "all", GEOBR_FILES["states_2020"], ""),
    ("municipality", 2010, "33", GEOBR_FILES["muni_rj_2010"], "RJ"),
    ("municipality", 2020, "33", GEOBR_FILES["muni_rj_2020"], "RJ"),
    ("municipality", 2020, "35", GEOBR_FILES["muni_sp_2020"], "SP"),
    ("municipality", 2020, "all", GEOBR_FILES["muni_all_2020"], ""),
    ("regions", 2020, "all", GEOBR_FILES["regions_2020"], ""),
    ("intermediate_regions", 2019, "all", GEOBR_FILES["intermediate_2019"], ""),
    ("amc", 1970, "all", GEOBR_FILES["amc_1970_2000"], ""),
    ("amc", 1970, "all", GEOBR_FILES["amc_1970_2010"], ""),
]


def _states():
    return gpd.GeoDataFrame(
        {
            "code_state": [31, 33, 35],
            "abbrev_state": ["MG", "RJ", "SP"],
            "name_state": ["Minas Gerais", "Rio De Janeiro", "Sao Paulo"],
        },
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), box(2, 0, 3, 1)],
        crs="EPSG:4674",
    )


def _municipalities(rows):
    return gpd.GeoDataFrame(
        {
            "code_muni": [r[0] for r in rows],
            "name_muni": [r[1] for r in rows],
            "code_state": [r[2] for r in rows],
            "abbrev_state": [r[3] for r in rows],
        },
        geometry=[box(i, 0, i + 1, 1) for i in range(len(rows))],
        crs="EPSG:4674",
    )


RIO = (3304557, "Rio De Janeiro", 33, "RJ")
NITEROI = (3303302, "Niteroi", 33, "RJ")
SAO_PAULO = (3550308, "Sao Paulo", 35, "SP")
BELO_HORIZONTE = (3106200, "Belo Horizonte", 31, "MG")
UBERLANDIA = (3170206, "Uberlandia", 31, "MG")


@pytest.fixture
def geobr_routes(routes, tmp_dir):
    index = pd.DataFrame(GEOBR_INDEX,
                         columns=["geo", "year", "code", "download_path", "code_abbrev"])
    routes[GEOBR_METADATA] = index.to_csv(index=False)

    def gpkg(key, gdf):
        routes[GEOBR_FILES[key]] = _gpkg_bytes(
            tmp_dir, os.path.basename(GEOBR_FILES[key]), {key: gdf}
        )

    gpkg("states_2010", _states().assign(name_state="old"))
    gpkg("states_2020", _states())
    gpkg("muni_rj_2010", _municipalities([RIO]))
    gpkg("muni_rj_2020", _municipalities([RIO, NITEROI]))
    gpkg("muni_sp_2020", _municipalities([SAO_PAULO]))
    gpkg("muni_all_2020", _municipalities(
        [RIO, NITEROI, SAO_PAULO, BELO_HORIZONTE, UBERLANDIA]
    ))
    gpkg("regions_2020", gpd.GeoDataFrame(
        {"code_region": [1, 2, 3, 4, 5]},
        geometry=[box(i, 0, i + 1, 1) for i in range(5)], crs="EPSG:4674",
    ))
    gpkg("intermediate_2019", gpd.GeoDataFrame(
        {
            "code_intermediate": [3301, 3302, 3501],
            "code_state": [33, 33, 35],
            "abbrev_state": ["RJ", "RJ", "SP"],
        },
        geometry=[box(i, 0, i + 1, 1) for i in range(3)], crs="EPSG:4674",
    ))
    gpkg("amc_1970_2000", gpd.GeoDataFrame(
        {"code_amc": [1]}, geometry=[box(0, 0, 1, 1)], crs="EPSG:4674"))
    gpkg("amc_1970_2010", gpd.GeoDataFrame(
        {"code_amc": [1, 2]}, geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1)],
        crs="EPSG:4674"))
    return routes


# ---------------------------------------------------------------------------
# Grids
# ---------------------------------------------------------------------------

STREBELLE_GSLIB = """\
# Strebelle (2002) training image, reduced
3 2 1
0.0 0.0 0.0
1.0 1.0 1.0
facies
0
1
1
0
0
1
"""


@pytest.fixture
def gslib_path(tmp_dir):
    path = os.path.join(tmp_dir, "Strebelle.gslib")
    with open(path, "w") as f:
        f.write(STREBELLE_GSLIB)
    return path


@pytest.fixture
def raster_path(tmp_dir):
    """2x3 GeoTIFF over (0, 0, 3, 2); row 0 (north) holds 1, 2, 3."""
    data = np.array([[1, 2, 3], [4, 5, 6]], dtype="float32")
    transform = from_bounds(0, 0, 3, 2, 3, 2)
    return _write_raster(os.path.join(tmp_dir, "grid.tif"), data, transform)
