"""pylisa — local Moran's I and spatial lags on neighbor graphs."""

from .core import LocalMoran, local_moran
from .errors import (
    LisaError, ShapeMismatchError, NoNeighborsError, MissingValueError,
    InvalidConfigurationError,
)
from .lag import spatial_lag, impute_missing, neighbor_values
from .models import ClusterLabel, LocalMoranResult, LocalMoranRecord
from .spatial import NeighborGraph, WeightScheme
from . import clusters, moments, permutation

__version__ = "0.1.0"
__all__ = [
    "LocalMoran", "local_moran",
    "spatial_lag", "impute_missing", "neighbor_values",
    "NeighborGraph", "WeightScheme",
    "ClusterLabel", "LocalMoranResult", "LocalMoranRecord",
    "LisaError", "ShapeMismatchError", "NoNeighborsError",
    "MissingValueError", "InvalidConfigurationError",
    "clusters", "moments", "permutation",
]
