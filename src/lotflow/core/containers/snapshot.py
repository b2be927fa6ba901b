from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import polars as pl

from lotflow.core.containers.lot import PositionLot
from lotflow.core.containers.open_position import OpenPosition
from lotflow.core.containers.position import ClosedPosition
from lotflow.core.enums import ExecutionMatchPolicy, TradeType
from lotflow.utils.numbers import ZERO


@dataclass(frozen=True, slots=True)
class LiveTradingRecordSnapshot:
    """
    Point-in-time copy of a live trading record.

    Taken under the record lock, so it never mixes lots from before and after
    a concurrent fill. Collections are tuples of frozen values: the snapshot
    cannot be used to change the live book, and any attempt to mutate it
    raises.

    Notes:
    - ``open_lots`` keep book order (ascending sequence).
    - ``closed_positions`` are ordered oldest exit first.
    - ``next_sequence`` / ``next_index`` let a restored record continue
      allocating without reusing numbers.
    """

    trade_type: TradeType
    match_policy: ExecutionMatchPolicy
    open_lots: tuple[PositionLot, ...] = ()
    closed_positions: tuple[ClosedPosition, ...] = ()
    total_fees: Decimal = ZERO
    next_sequence: int = 0
    next_index: int = 0
    name: str | None = None

    @property
    def net_open_position(self) -> OpenPosition | None:
        return OpenPosition.aggregate(self.trade_type, self.open_lots)

    @property
    def is_flat(self) -> bool:
        return not self.open_lots

    def lots_df(self) -> pl.DataFrame:
        """Open lots as a Polars DataFrame (numbers as floats, for analysis)."""
        if not self.open_lots:
            return pl.DataFrame()
        return pl.DataFrame(
            [
                {
                    "entry_sequence": lot.entry_sequence,
                    "entry_index": lot.entry_index,
                    "entry_time": lot.entry_time,
                    "entry_price": float(lot.entry_price),
                    "amount": float(lot.amount),
                    "fee": float(lot.fee),
                    "order_id": lot.order_id,
                    "correlation_id": lot.correlation_id,
                }
                for lot in self.open_lots
            ]
        )

    def positions_df(self) -> pl.DataFrame:
        """Closed positions as a Polars DataFrame, one row per pairing.

        Example:
            ```python
            df = record.snapshot().positions_df()
            by_lot = df.group_by("entry_sequence").agg(
                pl.col("gross_profit").sum().alias("pnl")
            )
            ```
        """
        if not self.closed_positions:
            return pl.DataFrame()
        return pl.DataFrame(
            [
                {
                    "entry_sequence": p.entry_sequence,
                    "exit_sequence": p.exit_sequence,
                    "side": p.entry.side.value,
                    "entry_index": p.entry.index,
                    "exit_index": p.exit.index,
                    "entry_time": p.entry.time,
                    "exit_time": p.exit.time,
                    "entry_price": float(p.entry.price),
                    "exit_price": float(p.exit.price),
                    "amount": float(p.amount),
                    "entry_fee": float(p.entry.fee),
                    "exit_fee": float(p.exit.fee),
                    "gross_profit": float(p.gross_profit),
                    "profit": float(p.profit),
                }
                for p in self.closed_positions
            ]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_type": self.trade_type.value,
            "match_policy": self.match_policy.value,
            "open_lots": [lot.to_dict() for lot in self.open_lots],
            "closed_positions": [p.to_dict() for p in self.closed_positions],
            "total_fees": str(self.total_fees),
            "next_sequence": self.next_sequence,
            "next_index": self.next_index,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LiveTradingRecordSnapshot:
        return cls(
            trade_type=TradeType(data["trade_type"]),
            match_policy=ExecutionMatchPolicy(data["match_policy"]),
            open_lots=tuple(PositionLot.from_dict(d) for d in data.get("open_lots", [])),
            closed_positions=tuple(ClosedPosition.from_dict(d) for d in data.get("closed_positions", [])),
            total_fees=Decimal(data.get("total_fees", "0")),
            next_sequence=int(data.get("next_sequence", 0)),
            next_index=int(data.get("next_index", 0)),
            name=data.get("name"),
        )
