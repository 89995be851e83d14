from .client import ID_BATCH_SIZE, StoreClient, build_in_filter, eq_filter, unique_ids
from .config import StoreConfig, StoreConfigError, StoreConfigResolver, load_store_config_from_env

__all__ = [
    "ID_BATCH_SIZE",
    "StoreClient",
    "StoreConfig",
    "StoreConfigError",
    "StoreConfigResolver",
    "build_in_filter",
    "eq_filter",
    "load_store_config_from_env",
    "unique_ids",
]
