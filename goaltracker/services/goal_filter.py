"""In-memory filter, sort and pagination of a user's goals.

This is the reference semantics for goal listing. The SQL repository
translates the same GoalFilter into a query and must return identical
pages; the shared repository contract tests hold both to it.

Order of operations:
1. equality predicates (status, category, priority)
2. case-insensitive substring search over title, description and tags
3. newest first by created_at, ties broken by id (descending)
4. slice [(page - 1) * limit, page * limit)
"""

from __future__ import annotations

from collections.abc import Iterable

from goaltracker.domain.entities import Goal, GoalFilter, GoalPage


def matches_search(goal: Goal, term: str) -> bool:
    needle = term.lower()
    if needle in goal.title.lower():
        return True
    if needle in (goal.description or "").lower():
        return True
    return any(needle in tag.lower() for tag in goal.tags)


def matches_filter(goal: Goal, goal_filter: GoalFilter) -> bool:
    if goal_filter.status is not None and goal.status != goal_filter.status:
        return False
    if goal_filter.category is not None and goal.category != goal_filter.category:
        return False
    if goal_filter.priority is not None and goal.priority != goal_filter.priority:
        return False
    term = goal_filter.search_term
    if term is not None and not matches_search(goal, term):
        return False
    return True


def sort_newest_first(goals: Iterable[Goal]) -> list[Goal]:
    return sorted(goals, key=lambda g: (g.created_at, g.id), reverse=True)


def paginate(
    goals: Iterable[Goal],
    goal_filter: GoalFilter,
    *,
    page: int,
    limit: int,
) -> GoalPage:
    """Filter, sort and slice goals into one page.

    Args:
        goals: Every goal owned by the caller
        goal_filter: Predicates to apply
        page: 1-based page number
        limit: Page size (>= 1)

    Returns:
        GoalPage with the slice and the pre-slice total
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1:
        raise ValueError("limit must be >= 1")

    selected = sort_newest_first(g for g in goals if matches_filter(g, goal_filter))
    start = (page - 1) * limit
    return GoalPage(
        items=selected[start : start + limit],
        total=len(selected),
        page=page,
        limit=limit,
    )
