"""
Dilution waterfall calculations.

Two views are supported:
- Waterfall: share issuances applied in order, each expressed as a
  percentage of the fully diluted total, with a running cumulative sum.
- Ownership stages: ownership split at each transaction stage, with
  dilution measured against the post-IPO stage.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from spacos.models.financial import HolderType


class DilutionSource(str, Enum):
    INITIAL_SHARES = "initial_shares"
    SPONSOR_PROMOTE = "sponsor_promote"
    FOUNDER_SHARES = "founder_shares"
    PRIVATE_WARRANTS = "private_warrants"
    PUBLIC_WARRANTS = "public_warrants"
    PIPE_SHARES = "pipe_shares"
    EARNOUT = "earnout"
    EQUITY_INCENTIVES = "equity_incentives"
    CONVERSION_NOTES = "conversion_notes"
    OTHER = "other"


SPONSOR_SOURCES = {DilutionSource.SPONSOR_PROMOTE, DilutionSource.FOUNDER_SHARES}
WARRANT_SOURCES = {DilutionSource.PRIVATE_WARRANTS, DilutionSource.PUBLIC_WARRANTS}

HOLDER_TYPE_SOURCES = {
    HolderType.PUBLIC: DilutionSource.INITIAL_SHARES,
    HolderType.SPONSOR: DilutionSource.SPONSOR_PROMOTE,
    HolderType.FOUNDER: DilutionSource.FOUNDER_SHARES,
    HolderType.PIPE: DilutionSource.PIPE_SHARES,
    HolderType.EARNOUT: DilutionSource.EARNOUT,
    HolderType.WARRANT_PUBLIC: DilutionSource.PUBLIC_WARRANTS,
    HolderType.WARRANT_PRIVATE: DilutionSource.PRIVATE_WARRANTS,
    HolderType.EQUITY_INCENTIVE: DilutionSource.EQUITY_INCENTIVES,
    HolderType.CONVERTIBLE: DilutionSource.CONVERSION_NOTES,
}

STAGE_ORDER = ["pre_ipo", "post_ipo", "post_pipe", "post_earnout", "post_warrants"]


class DilutionError(ValueError):
    """Raised when a waterfall cannot be computed from its inputs."""
    pass


@dataclass
class DilutionItem:
    """A share issuance (or redemption when is_negative) in the waterfall."""
    source: DilutionSource
    label: str
    shares: float
    percentage: Optional[float] = None
    is_negative: bool = False

    @property
    def signed_shares(self) -> float:
        return -self.shares if self.is_negative else self.shares


@dataclass
class WaterfallRow:
    source: DilutionSource
    label: str
    shares: float
    percentage: float
    cumulative_percentage: float
    is_negative: bool


@dataclass
class WaterfallResult:
    rows: list[WaterfallRow]
    total_shares: float
    total_dilution: float
    sponsor_dilution: float
    warrant_dilution: float
    pipe_dilution: float


@dataclass
class OwnershipStage:
    id: str
    name: str
    total_shares: float
    public_ownership: float = 0.0
    sponsor_ownership: float = 0.0
    target_ownership: float = 0.0
    pipe_ownership: float = 0.0
    earnout_ownership: float = 0.0
    description: Optional[str] = None


@dataclass
class StageDilution:
    stage_id: str
    public_dilution: float
    sponsor_dilution: float
    share_increase: float


@dataclass
class Scenario:
    name: str
    items: list[DilutionItem] = field(default_factory=list)


def calculate_waterfall(
    items: list[DilutionItem],
    total_shares: Optional[float] = None,
) -> WaterfallResult:
    """
    Compute percentages and cumulative percentages for a waterfall.

    The denominator is total_shares when given (and non-zero), otherwise the
    sum of signed shares. An item's fixed percentage overrides the computed
    one. Redemption rows report absolute share counts but negative
    percentages.

    Raises:
        DilutionError: If the denominator is zero while some item needs it
    """
    total = total_shares or sum(item.signed_shares for item in items)

    rows = []
    cumulative = 0.0
    for item in items:
        if item.percentage is not None:
            percentage = float(item.percentage)
        else:
            if not total:
                raise DilutionError("Total shares is zero; cannot compute dilution percentages")
            percentage = item.signed_shares / total * 100
        cumulative += percentage
        rows.append(WaterfallRow(
            source=item.source,
            label=item.label,
            shares=abs(item.shares),
            percentage=percentage,
            cumulative_percentage=cumulative,
            is_negative=item.is_negative,
        ))

    return WaterfallResult(
        rows=rows,
        total_shares=total if rows else 0,
        total_dilution=sum(r.percentage for r in rows),
        sponsor_dilution=sum(r.percentage for r in rows if r.source in SPONSOR_SOURCES),
        warrant_dilution=sum(r.percentage for r in rows if r.source in WARRANT_SOURCES),
        pipe_dilution=sum(r.percentage for r in rows if r.source == DilutionSource.PIPE_SHARES),
    )


def select_scenario(
    items: list[DilutionItem],
    scenarios: list[Scenario],
    scenario_name: Optional[str],
) -> list[DilutionItem]:
    """Items of the named scenario, falling back to the base items."""
    if scenario_name:
        for scenario in scenarios:
            if scenario.name == scenario_name and scenario.items:
                return scenario.items
    return items


def items_from_cap_table(entries) -> list[DilutionItem]:
    """Build waterfall items from cap table entries, one per holder."""
    items = []
    for entry in entries:
        items.append(DilutionItem(
            source=HOLDER_TYPE_SOURCES.get(entry.holder_type, DilutionSource.OTHER),
            label=f"{entry.holder_name} ({entry.share_class})",
            shares=float(entry.shares_owned or 0),
        ))
    return items


def sort_stages(stages: list[OwnershipStage]) -> list[OwnershipStage]:
    def rank(stage):
        return STAGE_ORDER.index(stage.id) if stage.id in STAGE_ORDER else len(STAGE_ORDER)

    return sorted(stages, key=rank)


def stage_dilution(stages: list[OwnershipStage], stage_id: str) -> Optional[StageDilution]:
    """
    Dilution of the given stage relative to post_ipo.

    Returns None when either stage is missing or post_ipo has no shares.
    """
    by_id = {s.id: s for s in stages}
    post_ipo = by_id.get("post_ipo")
    current = by_id.get(stage_id)
    if post_ipo is None or current is None or not post_ipo.total_shares:
        return None

    return StageDilution(
        stage_id=stage_id,
        public_dilution=post_ipo.public_ownership - current.public_ownership,
        sponsor_dilution=post_ipo.sponsor_ownership - current.sponsor_ownership,
        share_increase=(current.total_shares - post_ipo.total_shares) / post_ipo.total_shares * 100,
    )
