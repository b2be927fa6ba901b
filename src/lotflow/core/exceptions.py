"""
Exceptions raised by the lot ledger.

These provide clear, actionable error messages for rejected fills and
invalid book states. Every error is raised synchronously before the book
is modified.
"""

from __future__ import annotations

from decimal import Decimal


class LotflowError(Exception):
    """Base exception for lotflow errors."""

    pass


class ConfigurationError(LotflowError):
    """Raised when a book, record or store is configured incorrectly."""

    pass


class InvalidParameterError(ConfigurationError):
    """Raised when a constructor argument is missing or invalid."""

    def __init__(self, param: str, value: object, reason: str, hint: str | None = None):
        self.param = param
        self.value = value
        self.reason = reason
        self.hint = hint

        lines = [
            f"Invalid value for '{param}': {value!r}",
            f"  {reason}",
        ]
        if hint:
            lines.extend(["", f"Hint: {hint}"])

        super().__init__("\n".join(lines))


class InvalidFillError(LotflowError, ValueError):
    """Raised when a fill is missing or has a non-positive or NaN price/amount."""

    def __init__(self, reason: str, fill: object | None = None):
        self.reason = reason
        self.fill = fill

        lines = [f"Rejected fill: {reason}"]
        if fill is not None:
            lines.append(f"  Fill: {fill!r}")
        lines.extend(
            [
                "",
                "Fills must carry a finite, positive price and amount and a",
                "non-negative fee. The book was not modified.",
            ]
        )
        super().__init__("\n".join(lines))


class LedgerStateError(LotflowError, RuntimeError):
    """Raised when an operation is not valid for the current book state."""

    pass


class NoOpenPositionError(LedgerStateError):
    """Raised when an exit is recorded while no lots are open."""

    def __init__(self, fill: object | None = None):
        self.fill = fill
        lines = [
            "Exit without open position: there are no open lots to close.",
        ]
        if fill is not None:
            lines.append(f"  Fill: {fill!r}")
        lines.extend(
            [
                "",
                "Possible causes:",
                "  1. The fill side does not match the record's opening side",
                "  2. An earlier exit already closed every lot",
            ]
        )
        super().__init__("\n".join(lines))


class InsufficientOpenAmountError(LedgerStateError):
    """Raised when an exit requests more than the open lots hold."""

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(
            "\n".join(
                [
                    f"Exit amount {requested} exceeds the open amount {available}.",
                    "  Split the exit or record the missing entry fills first.",
                ]
            )
        )


class SpecificLotMismatchError(LedgerStateError):
    """Raised when a specific-lot exit cannot be matched to exactly one lot."""

    def __init__(self, reason: str, key: str | None = None, available: list[str] | None = None):
        self.reason = reason
        self.key = key
        self.available = available or []

        lines = [f"Specific-lot match failed: {reason}"]
        if key is not None:
            lines.append(f"  Identifier: {key!r}")
        if self.available:
            lines.append("")
            lines.append("Open lot identifiers:")
            for opt in self.available[:10]:
                lines.append(f"  - {opt}")
            if len(self.available) > 10:
                lines.append(f"  ... and {len(self.available) - 10} more")
        super().__init__("\n".join(lines))


class LotSequenceError(LedgerStateError):
    """Raised when a sequence number is reused or goes backwards."""

    def __init__(self, sequence: int, reason: str):
        self.sequence = sequence
        super().__init__(f"Invalid lot sequence {sequence}: {reason}")


__all__ = [
    # Base
    "LotflowError",
    # Configuration errors
    "ConfigurationError",
    "InvalidParameterError",
    # Fill errors
    "InvalidFillError",
    # State errors
    "LedgerStateError",
    "NoOpenPositionError",
    "InsufficientOpenAmountError",
    "SpecificLotMismatchError",
    "LotSequenceError",
]
