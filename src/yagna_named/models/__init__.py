"""Pydantic models for the yagna market API."""

from yagna_named.models._base import MarketModel
from yagna_named.models.market import Demand, EventType, MarketEvent, Proposal, create_demand
from yagna_named.models.node import NodeId, NodeInfo, parse_node_id

__all__ = [
    "Demand",
    "EventType",
    "MarketEvent",
    "MarketModel",
    "NodeId",
    "NodeInfo",
    "Proposal",
    "create_demand",
    "parse_node_id",
]
