"""Tier-gated views of a metrics snapshot."""

from dataclasses import dataclass
from typing import Any, Dict, Union

from .errors import UnknownTierError
from .models import MetricsSnapshot, Tier


@dataclass(frozen=True)
class FreeView:
    """Basic metrics: the only fields a free tenant can read."""

    page_views: int
    total_slide_downloads: int

    tier = Tier.FREE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_views": self.page_views,
            "total_slide_downloads": self.total_slide_downloads,
        }


@dataclass(frozen=True)
class PremiumView:
    metrics: MetricsSnapshot

    tier = Tier.PREMIUM

    @property
    def page_views(self) -> int:
        return self.metrics.page_views

    @property
    def total_slide_downloads(self) -> int:
        return self.metrics.total_slide_downloads

    def to_dict(self) -> Dict[str, Any]:
        return self.metrics.to_dict()


MetricsView = Union[FreeView, PremiumView]


def project(snapshot: MetricsSnapshot, tier: Union[Tier, str]) -> MetricsView:
    """Return the view of ``snapshot`` visible to ``tier``."""
    resolved = resolve_tier(tier)
    if resolved is Tier.FREE:
        return FreeView(
            page_views=snapshot.page_views,
            total_slide_downloads=snapshot.total_slide_downloads,
        )
    return PremiumView(metrics=snapshot)


def resolve_tier(tier: Union[Tier, str]) -> Tier:
    try:
        return Tier(tier)
    except ValueError:
        raise UnknownTierError(tier) from None
