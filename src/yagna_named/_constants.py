"""Internal constants shared across the library."""

API_URL = "http://127.0.0.1:7465"
MARKET_API_PATH = "/market-api/v1"
USER_AGENT = "yagna-named"

CACHE_FILE_NAME = "yagna-named.cache"

DEFAULT_SUBNETS: tuple[str, ...] = ("hybrid", "devnet-beta", "public-beta")

#: Seconds a single discovery pass listens to the market.
COLLECT_TIMEOUT = 30.0

#: Long-poll timeout (seconds) passed to the market events endpoint.
POLL_TIMEOUT = 5.0
MAX_EVENTS = 10

#: Demand lifetime in seconds, sent as ``golem.srv.comp.expiration``.
DEMAND_EXPIRATION = 30 * 60.0

# ------------------------------------------------------------------
# Property names
# ------------------------------------------------------------------

NODE_NAME_PROPERTY = "golem.node.id.name"
SUBNET_PROPERTY = "golem.node.debug.subnet"
EXPIRATION_PROPERTY = "golem.srv.comp.expiration"

SCANNER_NODE_NAME = "Named node scanner"

#: Placeholder written to rows whose node name is unknown.
UNKNOWN_NAME = "-"
