"""
JaxSpot Wallet Report
=====================

Tabular view and headline metrics for the simulated wallet.
"""

from dataclasses import dataclass, asdict
from typing import List, Dict, Any

import numpy as np
import pandas as pd

from jaxspot.core import config
from jaxspot.core.models import Position

POSITION_COLUMNS = [
    "id", "asset_id", "symbol", "direction", "status", "entry_price", "notional_usd",
    "opened_at", "closed_at", "close_price", "close_reason", "take_profit_price",
    "stop_loss_price", "floating_pnl", "realized_pnl", "pnl_pct",
]


@dataclass
class WalletSummary:
    open_count: int
    closed_count: int
    wins: int
    win_rate_pct: float
    total_realized_pnl: float
    open_pnl: float
    portfolio_balance: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def positions_frame(positions: List[Position]) -> pd.DataFrame:
    """
    One row per position. pnl_pct is realized pnl for closed positions and
    floating pnl for open ones, relative to notional.
    """
    if not positions:
        return pd.DataFrame(columns=POSITION_COLUMNS)

    rows = []
    for p in positions:
        row = p.to_dict()
        row.pop("metadata", None)
        row["opened_at"] = p.opened_at
        row["closed_at"] = p.closed_at
        rows.append(row)

    df = pd.DataFrame(rows)
    pnl = df["realized_pnl"].where(df["status"] == "Closed", df["floating_pnl"]).astype(float)
    df["pnl_pct"] = np.where(df["notional_usd"] != 0, pnl / df["notional_usd"] * 100.0, 0.0)
    return df[POSITION_COLUMNS]


def summarize_wallet(
    positions: List[Position],
    starting_balance: float = config.STARTING_BALANCE_USD,
) -> WalletSummary:
    """
    Headline metrics. A closed position with pnl >= 0 counts as a win.
    """
    df = positions_frame(positions)
    if df.empty:
        return WalletSummary(
            open_count=0, closed_count=0, wins=0, win_rate_pct=0.0,
            total_realized_pnl=0.0, open_pnl=0.0, portfolio_balance=float(starting_balance),
        )

    closed = df[df["status"] == "Closed"]
    open_ = df[df["status"] == "Open"]

    total_realized = float(closed["realized_pnl"].fillna(0.0).sum())
    open_pnl = float(open_["floating_pnl"].fillna(0.0).sum())
    wins = int((closed["realized_pnl"].fillna(0.0) >= 0).sum())
    win_rate = (wins / len(closed) * 100.0) if len(closed) else 0.0

    return WalletSummary(
        open_count=int(len(open_)),
        closed_count=int(len(closed)),
        wins=wins,
        win_rate_pct=float(win_rate),
        total_realized_pnl=total_realized,
        open_pnl=open_pnl,
        portfolio_balance=float(starting_balance) + total_realized + open_pnl,
    )
