"""
Domain: subscription tiers.

A tier governs how far away a member is matched and how many leads they may
claim. The numbers below are product decisions; they live in one table so
they can be changed (or overridden per service instance) in one place.

| tier          | radius | monthly cap | cost model       |
|---------------|--------|-------------|------------------|
| basic         | 10 mi  | 4           | free             |
| pro           | 50 mi  | unlimited   | flat monthly fee |
| pay_per_claim | 50 mi  | unlimited   | 1 credit / claim |
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class SubscriptionTier(str, Enum):
    BASIC = "basic"
    PRO = "pro"
    PAY_PER_CLAIM = "pay_per_claim"


class CostModel(str, Enum):
    FREE = "free"
    FLAT_MONTHLY = "flat_monthly"
    PER_CLAIM = "per_claim"


@dataclass(frozen=True, slots=True)
class TierPolicy:
    radius_miles: float
    monthly_claim_cap: Optional[int]
    cost_model: CostModel

    @property
    def debits_credits(self) -> bool:
        return self.cost_model is CostModel.PER_CLAIM


TIER_POLICIES: Mapping[SubscriptionTier, TierPolicy] = {
    SubscriptionTier.BASIC: TierPolicy(radius_miles=10, monthly_claim_cap=4, cost_model=CostModel.FREE),
    SubscriptionTier.PRO: TierPolicy(radius_miles=50, monthly_claim_cap=None, cost_model=CostModel.FLAT_MONTHLY),
    SubscriptionTier.PAY_PER_CLAIM: TierPolicy(radius_miles=50, monthly_claim_cap=None, cost_model=CostModel.PER_CLAIM),
}

# Credits granted to a member who signs up on pay-per-claim without a balance.
STARTER_CREDITS: int = 5

CREDITS_PER_CLAIM: int = 1
