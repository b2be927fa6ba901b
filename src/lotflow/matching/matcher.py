"""Lot selection for exit fills.

Pure functions: they take the book's open lots as an immutable sequence and
return the matches together with the lots that remain open. Nothing is
mutated, so a failed match leaves the caller's state untouched.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from lotflow.core.containers.lot import PositionLot
from lotflow.core.enums import ExecutionMatchPolicy
from lotflow.core.exceptions import (
    InsufficientOpenAmountError,
    LotSequenceError,
    SpecificLotMismatchError,
)
from lotflow.utils.numbers import ZERO


@dataclass(frozen=True, slots=True)
class LotMatch:
    """Portion of one open lot consumed by an exit.

    Attributes:
        lot (PositionLot): The lot as it was before the exit.
        amount (Decimal): Matched amount.
        entry_fee (Decimal): Part of the lot fee carried by the matched amount.
    """

    lot: PositionLot
    amount: Decimal
    entry_fee: Decimal

    @property
    def closes_lot(self) -> bool:
        return self.amount == self.lot.amount


@dataclass(frozen=True, slots=True)
class MatchResult:
    matches: tuple[LotMatch, ...]
    remaining: tuple[PositionLot, ...]

    @property
    def matched_amount(self) -> Decimal:
        return sum((m.amount for m in self.matches), ZERO)


def merge_entry(
    policy: ExecutionMatchPolicy,
    lots: Sequence[PositionLot],
    lot: PositionLot,
) -> tuple[PositionLot, ...]:
    """Apply entry semantics of ``policy`` and return the new open lots.

    AVG_COST folds the new lot into the single open lot; every other policy
    appends it.
    """
    if lots and lot.entry_sequence <= lots[-1].entry_sequence:
        raise LotSequenceError(lot.entry_sequence, "entry sequences must increase")
    if policy is ExecutionMatchPolicy.AVG_COST and lots:
        merged = _collapse(lots).merge(lot)
        return (merged,)
    return (*lots, lot)


def match_lots(
    policy: ExecutionMatchPolicy,
    lots: Sequence[PositionLot],
    amount: Decimal,
    *,
    identifiers: Sequence[str] = (),
    lot_sequence: int | None = None,
) -> MatchResult:
    """Select the open lots an exit of ``amount`` closes.

    Args:
        policy: Active matching policy.
        lots: Open lots in ascending sequence order.
        amount: Exit amount, positive.
        identifiers: Exit identifiers, correlation id first, then order id.
            At least one non-blank value is required for SPECIFIC_LOT;
            ignored by the other policies.
        lot_sequence: Pin the exit to the lot with this sequence, whatever
            the policy.

    Returns:
        MatchResult: Matches summing to ``amount`` and the remaining lots in
        their original order.

    Raises:
        InsufficientOpenAmountError: The candidate lots hold less than ``amount``.
        SpecificLotMismatchError: SPECIFIC_LOT without a usable identifier,
            with no matching lot, or with ``amount`` above the matched lot.
        LotSequenceError: Two open lots share a sequence number.
    """
    _check_unique(lots)

    if lot_sequence is not None:
        target = _find_by_sequence(lots, lot_sequence)
        if amount > target.amount:
            raise InsufficientOpenAmountError(amount, target.amount)
        candidates = [target]
    elif policy is ExecutionMatchPolicy.SPECIFIC_LOT:
        key, target = _find_specific(lots, identifiers)
        if amount > target.amount:
            raise SpecificLotMismatchError(
                f"exit amount {amount} exceeds matched lot amount {target.amount}", key
            )
        candidates = [target]
    elif policy is ExecutionMatchPolicy.LIFO:
        candidates = list(reversed(lots))
    elif policy is ExecutionMatchPolicy.AVG_COST:
        candidates = [_collapse(lots)] if lots else []
        lots = tuple(candidates)
    else:
        candidates = list(lots)

    available = sum((lot.amount for lot in candidates), ZERO)
    if amount > available:
        raise InsufficientOpenAmountError(amount, available)

    matches: list[LotMatch] = []
    replaced: dict[int, PositionLot | None] = {}
    remaining = amount
    for lot in candidates:
        if remaining <= ZERO:
            break
        take = min(lot.amount, remaining)
        fee = lot.fee_portion(take)
        matches.append(LotMatch(lot=lot, amount=take, entry_fee=fee))
        replaced[lot.entry_sequence] = None if take == lot.amount else lot.reduce(take, fee)
        remaining -= take

    left: list[PositionLot] = []
    for lot in lots:
        if lot.entry_sequence not in replaced:
            left.append(lot)
            continue
        reduced = replaced[lot.entry_sequence]
        if reduced is not None:
            left.append(reduced)
    return MatchResult(matches=tuple(matches), remaining=tuple(left))


def _collapse(lots: Sequence[PositionLot]) -> PositionLot:
    merged = lots[0]
    for lot in lots[1:]:
        merged = merged.merge(lot)
    return merged


def _check_unique(lots: Sequence[PositionLot]) -> None:
    seen: set[int] = set()
    for lot in lots:
        if lot.entry_sequence in seen:
            raise LotSequenceError(lot.entry_sequence, "sequence shared by two open lots")
        seen.add(lot.entry_sequence)


def _find_by_sequence(lots: Sequence[PositionLot], sequence: int) -> PositionLot:
    for lot in lots:
        if lot.entry_sequence == sequence:
            return lot
    raise LotSequenceError(sequence, "no open lot has this sequence")


def _find_specific(lots: Sequence[PositionLot], identifiers: Sequence[str]) -> tuple[str, PositionLot]:
    keys = [k for k in identifiers if k is not None and k.strip()]
    if not keys:
        raise SpecificLotMismatchError("exit fill needs a correlation_id or order_id")
    # correlation ids take precedence over order ids
    for key in keys:
        for lot in lots:
            if lot.correlation_id == key:
                return key, lot
        for lot in lots:
            if lot.order_id == key:
                return key, lot
    raise SpecificLotMismatchError(
        "no open lot matches the identifier",
        keys[0],
        available=[lot.correlation_id or lot.order_id or f"#{lot.entry_sequence}" for lot in lots],
    )
