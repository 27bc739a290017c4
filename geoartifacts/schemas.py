"""
Pandera DataFrame schemas for catalogs and provider tables.

Catalog files are validated once when loaded so a malformed bundled CSV or
a changed remote index fails loudly at lookup time instead of producing a
wrong URL.

Usage:
    from geoartifacts.schemas import NaturalEarthCatalogSchema, validate_schema
    df = validate_schema(df, NaturalEarthCatalogSchema, "naturalearth catalog")
"""

import pandera as pa
from pandera import Column, Check, DataFrameSchema

from geoartifacts.errors import SchemaMismatch


# ── Natural Earth layer catalog (bundled) ───────────────────────────────

NaturalEarthCatalogSchema = DataFrameSchema(
    columns={
        "SCALE": Column(str, Check.isin(["10m", "50m", "110m"]), nullable=False),
        "ENTITY": Column(str, nullable=False),
        "VARIANT": Column(str, nullable=False),
        "URL": Column(str, Check.str_startswith("http"), nullable=False),
    },
    strict=False,
    coerce=False,
    name="NaturalEarthCatalogSchema",
)


# ── geobr metadata index (remote) ───────────────────────────────────────

GeoBRMetadataSchema = DataFrameSchema(
    columns={
        "geo": Column(str, nullable=False),
        "year": Column(int, Check.greater_than(1800), nullable=False, coerce=True),
        "code": Column(str, nullable=True),
        "download_path": Column(str, Check.str_startswith("http"), nullable=False),
        "code_abbrev": Column(str, nullable=True, required=False),
    },
    strict=False,
    coerce=False,
    name="GeoBRMetadataSchema",
)


# ── GeoStatsImages training-image catalog (bundled) ─────────────────────

GeoStatsImagesCatalogSchema = DataFrameSchema(
    columns={
        "NAME": Column(str, nullable=False, unique=True),
        "FILE": Column(str, Check.str_endswith(".gslib"), nullable=False),
        "DESCRIPTION": Column(str, nullable=True),
    },
    strict=False,
    coerce=False,
    name="GeoStatsImagesCatalogSchema",
)


# ── INMET station list ──────────────────────────────────────────────────

InmetStationsSchema = DataFrameSchema(
    columns={
        "TP_ESTACAO": Column(str, nullable=False),
        "VL_LONGITUDE": Column(float, Check.in_range(-180.0, 180.0), nullable=True, coerce=True),
        "VL_LATITUDE": Column(float, Check.in_range(-90.0, 90.0), nullable=True, coerce=True),
        "VL_ALTITUDE": Column(float, nullable=True, coerce=True),
    },
    strict=False,
    coerce=False,
    name="InmetStationsSchema",
)


def validate_schema(df, schema, what):
    """Validate *df* against *schema*, returning the (coerced) frame.

    Parameters
    ----------
    df : pd.DataFrame
        Frame to validate.
    schema : pa.DataFrameSchema
        Schema to validate against.
    what : str
        Human-readable name of the table for error messages.

    Raises
    ------
    SchemaMismatch
        When a required column is absent or a check fails.
    """
    missing = [
        name for name, col in schema.columns.items()
        if col.required and name not in df.columns
    ]
    if missing:
        raise SchemaMismatch(
            f"[{what}] missing required columns: {missing}", missing=missing
        )

    try:
        return schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as exc:
        problems = []
        for failure in exc.failure_cases.itertuples():
            problems.append(
                f"column='{failure.column}' check='{failure.check}' "
                f"failure_case={failure.failure_case}"
            )
        raise SchemaMismatch(
            f"[{what}] schema validation failed with {len(problems)} errors: "
            + "; ".join(problems[:5])
        ) from exc
