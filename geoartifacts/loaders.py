"""
Format loaders: the boundary between cached files and GeoTables.

Decoding is delegated to geopandas (GeoPackage, Shapefile, GeoJSON),
rasterio (GeoTIFF) and pandas (CSV, JSON, GSLIB text). This module only
picks which file in a cache entry to read and which layer to request.
"""

import os
import re

import geopandas as gpd
import numpy as np
import pandas as pd
import rasterio

from geoartifacts.errors import NotFoundError, SchemaMismatch
from geoartifacts.logging_config import StepTimer, get_logger
from geoartifacts.tables import grid_frame

log = get_logger(__name__)

VECTOR_EXTS = (".gpkg", ".shp", ".geojson")
RASTER_EXTS = (".tif", ".tiff")
GRID_EXTS = (".gslib",)
RECORD_EXTS = (".json", ".csv")
GEO_EXTS = VECTOR_EXTS + RASTER_EXTS + GRID_EXTS


def find_data_file(directory, extensions=GEO_EXTS):
    """First file under *directory* (sorted, recursive) with a wanted extension.

    Hidden files, such as the cache marker, are skipped.
    """
    for root, dirs, files in sorted(os.walk(directory)):
        dirs.sort()
        for name in sorted(files):
            if name.startswith("."):
                continue
            if os.path.splitext(name)[1].lower() in extensions:
                return os.path.join(root, name)
    raise NotFoundError(
        f"no {'/'.join(extensions)} file found in {directory}"
    )


def list_layers(path):
    """Layer names of a multi-layer vector file, in file order."""
    return list(gpd.list_layers(path)["name"])


def gpkg_layer_for_level(path, level):
    """Layer name holding administrative *level* in a GeoPackage.

    GADM names layers ``ADM_ADM_0``, ``gadm36_IND_1`` and so on; when every
    layer ends in a level number the number decides, otherwise the plain
    layer index does.
    """
    names = list_layers(path)
    by_level = {}
    for name in names:
        m = re.search(r"(\d+)$", name)
        if m:
            by_level.setdefault(int(m.group(1)), name)
    if len(by_level) == len(names) and level in by_level:
        return by_level[level]
    if len(by_level) != len(names) and 0 <= level < len(names):
        return names[level]
    raise NotFoundError(
        f"level {level} not available in {os.path.basename(path)}; layers: {names}"
    )


def load(path, layer=None, **kwargs):
    """Load *path* (a file or a cache entry directory) as a GeoDataFrame.

    Parameters
    ----------
    path : str
        Data file, or a directory searched with find_data_file().
    layer : int or str, optional
        Vector layer; an integer is an administrative level for GeoPackages
        and a plain index otherwise.
    **kwargs
        Forwarded to ``geopandas.read_file``.
    """
    if os.path.isdir(path):
        path = find_data_file(path)
    ext = os.path.splitext(path)[1].lower()

    with StepTimer() as timer:
        if ext in RASTER_EXTS:
            table = load_raster(path)
        elif ext in GRID_EXTS:
            table = load_gslib(path)
        else:
            if isinstance(layer, int) and ext == ".gpkg":
                layer = gpkg_layer_for_level(path, layer)
            if layer is not None:
                kwargs["layer"] = layer
            table = gpd.read_file(path, **kwargs)

    log.info("Loaded %d rows from %s", len(table), os.path.basename(path),
             extra={"rows": len(table), "timing_seconds": timer.elapsed})
    return table


def load_records(path):
    """Load a plain JSON or CSV record list as a DataFrame."""
    if os.path.isdir(path):
        path = find_data_file(path, RECORD_EXTS)
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        return pd.read_csv(path)
    return pd.read_json(path)


def load_raster(path):
    """Read a GeoTIFF into a grid GeoDataFrame with one column per band.

    Cells are ordered from the bottom-left corner, x fastest.
    """
    with rasterio.open(path) as src:
        t = src.transform
        if t.b != 0 or t.d != 0:
            raise ValueError(f"rotated rasters are not supported: {path}")
        bands = src.read(masked=True).astype("float64").filled(np.nan)
        names = [
            desc or f"band{i}"
            for i, desc in enumerate(src.descriptions or (), start=1)
        ] or [f"band{i}" for i in range(1, src.count + 1)]
        width, height = src.width, src.height
        crs = src.crs.to_string() if src.crs else None

    # Raster rows run north to south; flip so row 0 is the southern edge.
    data = pd.DataFrame({
        name: np.flipud(band).ravel() for name, band in zip(names, bands)
    })
    origin = (t.c, t.f + t.e * height)
    spacing = (t.a, -t.e)
    return grid_frame(data, (width, height), origin, spacing, crs=crs)


def _gslib_header(lines):
    """Parse the extended GSLIB header; returns (dims, origin, spacing, names, n)."""
    body = []
    n_header = 0
    for line in lines:
        n_header += 1
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        body.append(stripped)
        if len(body) == 4:
            break
    if len(body) < 4:
        raise SchemaMismatch("truncated GSLIB header")
    dims = tuple(int(v) for v in body[0].split())
    origin = tuple(float(v) for v in body[1].split())
    spacing = tuple(float(v) for v in body[2].split())
    names = body[3].split()
    return dims, origin, spacing, names, n_header


def load_gslib(path):
    """Read an extended GSLIB file into a grid GeoDataFrame.

    Header: ``#`` comment lines, then ``nx ny nz``, origin, spacing and the
    variable names; values follow one cell per line, x fastest.
    """
    with open(path) as f:
        dims, origin, spacing, names, n_header = _gslib_header(f)
    data = pd.read_csv(path, sep=r"\s+", header=None, names=names,
                       skiprows=n_header, engine="python")
    return grid_frame(data, dims, origin, spacing)
