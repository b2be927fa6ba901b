from lotflow.utils.numbers import ZERO, NumberLike, is_non_negative, is_positive, to_decimal

__all__ = [
    "ZERO",
    "NumberLike",
    "is_non_negative",
    "is_positive",
    "to_decimal",
]
