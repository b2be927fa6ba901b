from lotflow.matching.matcher import LotMatch, MatchResult, match_lots, merge_entry

__all__ = [
    "LotMatch",
    "MatchResult",
    "match_lots",
    "merge_entry",
]
