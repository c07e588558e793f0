"""Market API models: demands, proposals and subscription events."""

from __future__ import annotations

import time
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from yagna_named._constants import (
    DEMAND_EXPIRATION,
    EXPIRATION_PROPERTY,
    NODE_NAME_PROPERTY,
    SCANNER_NODE_NAME,
    SUBNET_PROPERTY,
)
from yagna_named.models._base import MarketModel


class EventType(StrEnum):
    PROPOSAL = "ProposalEvent"
    PROPOSAL_REJECTED = "ProposalRejectedEvent"
    PROPERTY_QUERY = "PropertyQueryEvent"
    AGREEMENT = "AgreementEvent"


class Demand(BaseModel):
    """A demand published to the market (``NewDemand``)."""

    model_config = ConfigDict(frozen=True)

    properties: dict[str, Any] = Field(default_factory=dict)
    constraints: str = "()"


class Proposal(MarketModel):
    """An offer proposal received in reply to a demand subscription."""

    proposal_id: str = ""
    issuer_id: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)
    constraints: str = ""
    state: str | None = None
    timestamp: datetime | None = None
    prev_proposal_id: str | None = None


class MarketEvent(MarketModel):
    """A single entry of the demand events feed."""

    event_type: str = ""
    event_date: datetime | None = None
    proposal: Proposal | None = None
    proposal_id: str | None = None
    reason: dict[str, Any] | None = None

    @property
    def is_proposal(self) -> bool:
        return self.event_type == EventType.PROPOSAL and self.proposal is not None


def create_demand(subnet: str, *, expiration: float = DEMAND_EXPIRATION, now_ms: int | None = None) -> Demand:
    """Build the demand the scanner publishes on *subnet*.

    The demand has no constraints so every provider on the subnet answers
    with an offer proposal.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return Demand(
        properties={
            NODE_NAME_PROPERTY: SCANNER_NODE_NAME,
            SUBNET_PROPERTY: subnet,
            EXPIRATION_PROPERTY: now_ms + int(expiration * 1000),
        },
        constraints="()",
    )
