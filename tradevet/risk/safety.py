"""Account safety limits and correlated exposure checks"""

from typing import Optional

from ..config.defaults import LimitedPairsParams, SafetyLimits
from ..models.signals import AccountState, AddCandidate, EntryCandidate


def check_safety_limits(
    candidate: EntryCandidate,
    account: AccountState,
    limits: SafetyLimits
) -> list[str]:
    """
    Check an entry against account-level safety limits.

    Returns:
        Violation descriptions; empty when every limit passes
    """
    violations = []

    if account.equity < limits.min_account_balance:
        violations.append(
            f"account balance {account.equity:.2f} below minimum {limits.min_account_balance:.2f}"
        )

    holds_asset = any(p.asset == candidate.asset for p in account.open_positions)
    opens_new = not (isinstance(candidate, AddCandidate) and holds_asset)
    if opens_new and len(account.open_positions) >= limits.max_open_positions:
        violations.append(
            f"{len(account.open_positions)} open positions, limit {limits.max_open_positions}"
        )

    if account.daily_pnl_pct <= -limits.daily_loss_limit:
        violations.append(
            f"daily loss {abs(account.daily_pnl_pct):.2f}% reached limit {limits.daily_loss_limit:.2f}%"
        )

    if account.consecutive_losses >= limits.consecutive_losses:
        violations.append(
            f"{account.consecutive_losses} consecutive losses, trading paused"
        )

    return violations


def check_correlated_exposure(
    candidate: EntryCandidate,
    account: AccountState,
    correlations: Optional[dict[str, dict[str, Optional[float]]]],
    params: LimitedPairsParams
) -> Optional[str]:
    """
    Reject same-direction exposure on highly correlated assets.

    Returns:
        Violation description, or None when the entry is allowed
    """
    if not params.enabled or not correlations:
        return None

    row = correlations.get(candidate.asset, {})
    for position in account.open_positions:
        if position.asset == candidate.asset or position.side is not candidate.side:
            continue
        correlation = row.get(position.asset)
        if correlation is not None and correlation >= params.correlation_threshold:
            return (
                f"correlated exposure: {position.side.value} {position.asset} "
                f"(correlation {correlation:.2f} >= {params.correlation_threshold:.2f})"
            )

    return None
