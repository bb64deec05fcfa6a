from dataclasses import replace

from budgetflow.domain import SavingsGoal, new_id


def save_goal(goals: tuple[SavingsGoal, ...], goal: SavingsGoal) -> tuple[SavingsGoal, ...]:
    if goal.id and any(g.id == goal.id for g in goals):
        return tuple(goal if g.id == goal.id else g for g in goals)
    return goals + (replace(goal, id=goal.id or new_id("goal")),)


def delete_goal(goals: tuple[SavingsGoal, ...], goal_id: str) -> tuple[SavingsGoal, ...]:
    return tuple(g for g in goals if g.id != goal_id)
