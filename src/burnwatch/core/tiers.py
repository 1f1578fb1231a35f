"""
Centralized tier definitions for burnwatch.

This module is the single source of truth for tier-related configuration.
Service tiers define reliability expectations, SLO presets, alert severities
and response-time targets.

Tiers:
- Tier-0: Business-critical, "can't fail" systems
- Tier-1: Important core services, slightly more tolerant
- Tier-2: Supporting services, partial unavailability often accepted
- Tier-3: Internal tools, not mission-critical for customers
"""

from __future__ import annotations

from dataclasses import dataclass


# Canonical tier names
TIER_NAMES: tuple[str, ...] = ("Tier-0", "Tier-1", "Tier-2", "Tier-3")


@dataclass(frozen=True)
class TierConfig:
    """Configuration for a service tier.

    Attributes:
        name: Tier name (Tier-0 .. Tier-3)
        description: Description of the tier
        min_slo: Minimum availability target percentage (e.g., 99.95)
        max_yearly_downtime: Downtime allowed per year at min_slo
        incident_priority: Incident priority opened for this tier
        on_call: On-call expectation
        mtta_minutes: Mean-time-to-acknowledge target
        mttr_minutes: Mean-time-to-resolve target
        mttc_hours: Mean-time-to-close target (postmortem done)
        latency_target_ms: Preset per-request latency target
    """

    name: str
    description: str
    min_slo: float
    max_yearly_downtime: str
    incident_priority: str
    on_call: str
    mtta_minutes: int
    mttr_minutes: int
    mttc_hours: int
    latency_target_ms: float

    @property
    def availability_target(self) -> float:
        """Preset availability target (the tier's minimum SLO)."""
        return self.min_slo


# Tier configurations - single source of truth
TIER_CONFIGS: dict[str, TierConfig] = {
    "Tier-0": TierConfig(
        name="Tier-0",
        description="Business-Critical. 'Can't fail' systems.",
        min_slo=99.95,
        max_yearly_downtime="4h 20m 49s",
        incident_priority="P-0",
        on_call="24/7 Required",
        mtta_minutes=5,
        mttr_minutes=60,
        mttc_hours=24,
        latency_target_ms=500.0,
    ),
    "Tier-1": TierConfig(
        name="Tier-1",
        description="Important. Core but slightly more tolerant.",
        min_slo=99.5,
        max_yearly_downtime="1d 19h 28m 9s",
        incident_priority="P-1",
        on_call="24/7 Required",
        mtta_minutes=5,
        mttr_minutes=60,
        mttc_hours=24,
        latency_target_ms=800.0,
    ),
    "Tier-2": TierConfig(
        name="Tier-2",
        description="Supporting. Partial unavailability often accepted.",
        min_slo=99.0,
        max_yearly_downtime="3d 14h 56m 18s",
        incident_priority="P-2",
        on_call="Business Hours Recommended",
        mtta_minutes=15,
        mttr_minutes=240,
        mttc_hours=72,
        latency_target_ms=1200.0,
    ),
    "Tier-3": TierConfig(
        name="Tier-3",
        description="Internal tools. Not mission-critical for customers.",
        min_slo=98.0,
        max_yearly_downtime="7d 5h 52m 35s",
        incident_priority="P-3",
        on_call="Business Hours Recommended",
        mtta_minutes=60,
        mttr_minutes=24 * 60,
        mttc_hours=120,
        latency_target_ms=1500.0,
    ),
}

# Shorthand tier names
_TIER_ALIASES: dict[str, str] = {
    "tier-0": "Tier-0",
    "tier-1": "Tier-1",
    "tier-2": "Tier-2",
    "tier-3": "Tier-3",
    "t0": "Tier-0",
    "t1": "Tier-1",
    "t2": "Tier-2",
    "t3": "Tier-3",
    "0": "Tier-0",
    "1": "Tier-1",
    "2": "Tier-2",
    "3": "Tier-3",
}


def normalize_tier(tier: str) -> str:
    """Normalize tier name to canonical form.

    Args:
        tier: Tier name (may be alias like 'tier-0', 't1' or '2')

    Returns:
        Canonical tier name ('Tier-0' .. 'Tier-3')

    Raises:
        ValueError: If tier name is invalid
    """
    tier_lower = tier.strip().lower()
    if tier_lower in _TIER_ALIASES:
        return _TIER_ALIASES[tier_lower]
    raise ValueError(f"Invalid tier: {tier}. Valid tiers: {', '.join(TIER_NAMES)}")


def get_tier_config(tier: str) -> TierConfig:
    """Get configuration for a tier (accepts aliases)."""
    return TIER_CONFIGS[normalize_tier(tier)]
