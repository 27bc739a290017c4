"""
Dataset module registry.

Each provider is a self-contained module exporting get_meta(), a
``DESCRIPTOR`` for the generic resolver and its public loaders. Register
new providers here.

The registry is built lazily so importing one provider does not import
the others.
"""

_DATASET_REGISTRY = None


def _build_registry() -> dict:
    from geoartifacts.datasets import gadm, geobr, geostatsimages, inmet, naturalearth

    return {
        # family name -> provider module
        "admin-boundaries": gadm,
        "weather-stations": inmet,
        "map-layer": naturalearth,
        "statistical-area": geobr,
        "training-image": geostatsimages,
    }


def __getattr__(name):
    global _DATASET_REGISTRY
    if name == "DATASET_REGISTRY":
        if _DATASET_REGISTRY is None:
            _DATASET_REGISTRY = _build_registry()
        return _DATASET_REGISTRY
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
