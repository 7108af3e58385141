from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.adapters.cloud_adapter import CloudAdapter
from shakenbake.adapters.factory import DestinationAdapterFactory
from shakenbake.adapters.mock_adapter import MockAdapter
from shakenbake.adapters.proxy_adapter import ProxyAdapter

__all__ = [
    "BaseDestinationAdapter",
    "CloudAdapter",
    "DestinationAdapterFactory",
    "MockAdapter",
    "ProxyAdapter",
]
