"""manifest-finder middlewares"""

from enum import Enum, unique


@unique
class ScopeKey(str, Enum):
    """Keys into the ASGI scope dict"""

    METRICS_CLIENT = "manifest_finder_metrics_client"
