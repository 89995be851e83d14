from .client import HttpResponse, HubConfig, RequestError, RestClient, Transport, UrllibTransport, load_hub_config
from .hub import HubApi

__all__ = [
    "HttpResponse",
    "HubApi",
    "HubConfig",
    "RequestError",
    "RestClient",
    "Transport",
    "UrllibTransport",
    "load_hub_config",
]
