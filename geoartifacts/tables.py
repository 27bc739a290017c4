"""
Post-processing applied to loaded tables before they reach the caller.

Functions here take and return ``geopandas.GeoDataFrame`` (the package's
GeoTable) or plain ``pandas.DataFrame`` and never touch the network or the
cache.
"""

from typing import Iterable, Optional, Sequence

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.polygon import orient

from geoartifacts import config
from geoartifacts.errors import InvalidArgument, SchemaMismatch


def split_columns(frame: pd.DataFrame, coord_cols: Sequence[str]):
    """Partition *frame* into (feature columns, coordinate columns).

    Every column lands on exactly one side.

    Raises
    ------
    SchemaMismatch
        A coordinate column is absent.
    """
    missing = [c for c in coord_cols if c not in frame.columns]
    if missing:
        raise SchemaMismatch(
            f"expected coordinate columns {missing} not found; "
            f"available: {list(frame.columns)}",
            missing=missing,
        )
    features = frame.drop(columns=list(coord_cols))
    coords = frame[list(coord_cols)]
    return features, coords


def points_from_columns(frame: pd.DataFrame, coord_cols: Sequence[str],
                        crs=config.DEFAULT_CRS) -> gpd.GeoDataFrame:
    """Consume coordinate columns into a point geometry, one point per row.

    Two columns (x, y) give 2D points, three (x, y, z) give 3D points. Row
    order is preserved; the coordinate columns do not survive as data.
    """
    if len(coord_cols) not in (2, 3):
        raise InvalidArgument(
            f"need 2 or 3 coordinate columns, got {len(coord_cols)}"
        )
    features, coords = split_columns(frame, coord_cols)
    # Unit-carrying or textual values become plain floats.
    xyz = coords.apply(pd.to_numeric, errors="coerce").to_numpy(dtype=float)
    geometry = shapely.points(xyz)
    return gpd.GeoDataFrame(
        features.reset_index(drop=True),
        geometry=gpd.GeoSeries(geometry, crs=crs),
        crs=crs,
    )


def filter_rows(table: pd.DataFrame, pairs: Iterable) -> pd.DataFrame:
    """Keep the rows where every ``(column, value)`` pair is equal.

    The result is a restriction of *table*: it keeps the original index,
    so rows still point at their position in the loaded layer.
    """
    pairs = list(pairs)
    if not pairs:
        return table
    missing = [col for col, _ in pairs if col not in table.columns]
    if missing:
        raise SchemaMismatch(
            f"filter columns {missing} not found; available: {list(table.columns)}",
            missing=missing,
        )
    keep = pd.Series(True, index=table.index)
    for col, value in pairs:
        keep &= table[col] == value
    return table.loc[keep]


def grid_frame(data: pd.DataFrame, dims, origin, spacing,
               crs=None) -> gpd.GeoDataFrame:
    """Attach a regular grid geometry to *data* (x fastest, then y, then z).

    2D grids get square cell polygons; 3D grids get cell-centre points.
    The grid description is kept in ``attrs["grid"]``.
    """
    nx, ny, nz = (tuple(dims) + (1, 1))[:3]
    ox, oy, oz = (tuple(origin) + (0.0, 0.0))[:3]
    sx, sy, sz = (tuple(spacing) + (1.0, 1.0))[:3]
    n = nx * ny * nz
    if len(data) != n:
        raise SchemaMismatch(
            f"grid {nx}x{ny}x{nz} needs {n} rows, table has {len(data)}"
        )

    i = np.arange(n)
    ix, iy, iz = i % nx, (i // nx) % ny, i // (nx * ny)
    if nz == 1:
        geometry = shapely.box(ox + ix * sx, oy + iy * sy,
                               ox + (ix + 1) * sx, oy + (iy + 1) * sy)
    else:
        geometry = shapely.points(ox + (ix + 0.5) * sx,
                                  oy + (iy + 0.5) * sy,
                                  oz + (iz + 0.5) * sz)

    gdf = gpd.GeoDataFrame(data.reset_index(drop=True),
                           geometry=gpd.GeoSeries(geometry, crs=crs), crs=crs)
    gdf.attrs["grid"] = {
        "dims": (nx, ny, nz) if nz > 1 else (nx, ny),
        "origin": (ox, oy, oz) if nz > 1 else (ox, oy),
        "spacing": (sx, sy, sz) if nz > 1 else (sx, sy),
    }
    return gdf


def num_vertices(geom) -> int:
    if geom is None:
        return 0
    return int(shapely.get_num_coordinates(geom))


def _simplify_within(geom, epsilon, min_vertices, max_vertices, maxiter):
    tolerance = epsilon
    best = geom.simplify(tolerance, preserve_topology=True)
    for _ in range(maxiter):
        n = num_vertices(best)
        if n < min_vertices and tolerance > 0:
            tolerance /= 2
        elif max_vertices is not None and n > max_vertices:
            tolerance = tolerance * 2 if tolerance > 0 else 1e-6
        else:
            break
        best = geom.simplify(tolerance, preserve_topology=True)
    return best


def decimate(table: gpd.GeoDataFrame, epsilon: Optional[float] = None,
             min_vertices: int = config.DECIMATE_MIN_VERTICES,
             max_vertices: Optional[int] = None,
             maxiter: int = config.DECIMATE_MAXITER) -> gpd.GeoDataFrame:
    """Reduce vertex density of every geometry; feature count is unchanged.

    ``epsilon`` is the Douglas-Peucker tolerance in CRS units; None turns
    decimation off. When a result has fewer than ``min_vertices`` or more
    than ``max_vertices`` coordinates the tolerance is halved or doubled,
    for at most ``maxiter`` rounds.
    """
    if epsilon is None:
        return table
    if epsilon < 0:
        raise InvalidArgument(f"epsilon must be non-negative, got {epsilon!r}")
    if max_vertices is not None and max_vertices < min_vertices:
        raise InvalidArgument(
            f"max_vertices ({max_vertices}) is below min_vertices ({min_vertices})"
        )

    def simplify(geom):
        if geom is None or geom.is_empty:
            return geom
        return _simplify_within(geom, epsilon, min_vertices, max_vertices, maxiter)

    out = table.copy()
    out[out.geometry.name] = out.geometry.apply(simplify)
    return out


def _orient(geom):
    if isinstance(geom, Polygon):
        return orient(geom, sign=1.0)
    if isinstance(geom, MultiPolygon):
        return MultiPolygon([orient(p, sign=1.0) for p in geom.geoms])
    if isinstance(geom, GeometryCollection):
        polys = [p for p in geom.geoms if isinstance(p, (Polygon, MultiPolygon))]
        parts = []
        for p in polys:
            parts.extend(p.geoms if isinstance(p, MultiPolygon) else [p])
        if parts:
            return MultiPolygon([orient(p, sign=1.0) for p in parts])
    return geom


def fix_geometries(table: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Repair invalid polygons and orient exterior rings counter-clockwise."""
    out = table.copy()
    valid = out.geometry.make_valid()
    out[out.geometry.name] = gpd.GeoSeries(
        [_orient(g) for g in valid], index=out.index, crs=out.crs
    )
    return out
