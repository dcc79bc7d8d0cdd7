"""岛屿放置搜索算法。"""

from .backtrack import IslandSearch, SearchContext, ensure_recursion_limit, solve_face

__all__ = ["IslandSearch", "SearchContext", "ensure_recursion_limit", "solve_face"]
