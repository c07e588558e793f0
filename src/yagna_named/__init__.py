"""yagna-named - discover and cache Golem provider node names."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("yagna-named")
except PackageNotFoundError:
    __version__ = "0+local"
from yagna_named.cache import NameCache, canonical_names, load_names, lookup_name, merge_names, persist_names
from yagna_named.collector import collect, extract, open_segment_stream
from yagna_named.config import NamedConfig
from yagna_named.decorate import decorate_row, decorate_table
from yagna_named.exceptions import (
    CacheError,
    CacheLoadError,
    CachePersistError,
    DecorateError,
    ExtractionError,
    MarketApiError,
    MarketTransportError,
    NamedConfigError,
    NamedError,
    NoSourcesAvailable,
    SubscriptionError,
    YagnaCommandError,
)
from yagna_named.market import MarketClient, Subscription
from yagna_named.models import Demand, MarketEvent, NodeId, NodeInfo, Proposal, create_demand, parse_node_id

__all__ = [
    "__version__",
    "canonical_names",
    "CacheError",
    "CacheLoadError",
    "CachePersistError",
    "DecorateError",
    "Demand",
    "ExtractionError",
    "MarketApiError",
    "MarketClient",
    "MarketEvent",
    "MarketTransportError",
    "NameCache",
    "NamedConfig",
    "NamedConfigError",
    "NamedError",
    "NoSourcesAvailable",
    "NodeId",
    "NodeInfo",
    "Proposal",
    "Subscription",
    "SubscriptionError",
    "YagnaCommandError",
    "collect",
    "create_demand",
    "decorate_row",
    "decorate_table",
    "extract",
    "load_names",
    "lookup_name",
    "merge_names",
    "open_segment_stream",
    "parse_node_id",
    "persist_names",
]
