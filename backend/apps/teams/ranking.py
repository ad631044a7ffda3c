"""
队伍排名计算

标准竞赛排名（1224）：按分数降序，分数严格相等的队伍共享名次，
下一个不同分数的队伍名次等于其在降序序列中的位置。
例：分数 [50, 50, 30] → 名次 [1, 1, 3]
"""

from __future__ import annotations

from typing import Hashable, Iterable, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)


def compute_ranks(rows: Iterable[Tuple[K, int]]) -> dict[K, int]:
    """
    根据 (team_id, score) 全量快照计算名次

    - rows 必须是全体队伍，局部数据算出的名次没有意义
    - 同分队伍之间保持输入顺序（sorted 为稳定排序），但名次一定相同
    - 空输入返回空字典
    """
    ordered = sorted(rows, key=lambda row: row[1], reverse=True)
    ranks: dict[K, int] = {}
    previous_score: int | None = None
    current_rank = 0
    for position, (team_id, score) in enumerate(ordered, start=1):
        if score != previous_score:
            current_rank = position
            previous_score = score
        ranks[team_id] = current_rank
    return ranks
