"""Badge rule set — evaluates one award against the fixed unlock conditions."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from cosecha.gamification.actions import AchievementAction
from cosecha.gamification.badges import BadgeRegistry
from cosecha.gamification.collaborators import CounterLookup
from cosecha.gamification.errors import CounterLookupError

logger = logging.getLogger(__name__)

LEVEL_MILESTONE_EVERY = 3
TASK_COLLECTOR_THRESHOLD = 10
LOGGER_NOVICE_THRESHOLD = 5
LOGGER_MASTER_THRESHOLD = 50


@dataclass(frozen=True, slots=True)
class RuleContext:
    """Everything a rule may look at for one award."""

    action: AchievementAction
    level: int
    leveled_up: bool
    task_count: int
    progress_log_count: int


@dataclass(frozen=True, slots=True)
class BadgeRule:
    badge_id: str
    condition: Callable[[RuleContext], bool]

    def applies(self, ctx: RuleContext) -> bool:
        return self.condition(ctx)


class BadgeRuleSet:
    """Ordered, immutable collection of badge rules.

    Every rule's badge must exist in the registry, so presenters can
    always resolve what the engine unlocks.
    """

    def __init__(self, rules: Sequence[BadgeRule], registry: BadgeRegistry) -> None:
        unknown = [rule.badge_id for rule in rules if rule.badge_id not in registry]
        if unknown:
            msg = f"Rules reference unregistered badges: {', '.join(unknown)}"
            raise ValueError(msg)
        self._rules = tuple(rules)
        self.registry = registry

    def __iter__(self) -> Iterator[BadgeRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def qualifying(self, ctx: RuleContext) -> list[str]:
        """Badge IDs whose condition holds, in rule order."""
        return [rule.badge_id for rule in self._rules if rule.applies(ctx)]

    async def evaluate(
        self,
        counters: CounterLookup,
        user_id: uuid.UUID,
        action: AchievementAction,
        level: int,
        leveled_up: bool,
    ) -> list[str]:
        """Query counters once and return the qualifying badge IDs.

        A failed lookup raises CounterLookupError rather than counting as zero.
        """
        try:
            task_count = await counters.count_tasks(user_id)
            progress_log_count = await counters.count_progress_logs(user_id)
        except Exception as exc:
            logger.error("Counter lookup failed for user %s", user_id, exc_info=True)
            raise CounterLookupError(user_id, f"counter lookup failed: {exc}") from exc

        return self.qualifying(
            RuleContext(
                action=action,
                level=level,
                leveled_up=leveled_up,
                task_count=task_count,
                progress_log_count=progress_log_count,
            )
        )


DEFAULT_RULES: tuple[BadgeRule, ...] = (
    BadgeRule("level_milestone", lambda c: c.leveled_up and c.level % LEVEL_MILESTONE_EVERY == 0),
    BadgeRule("first_task", lambda c: c.task_count >= 1),
    BadgeRule("task_collector", lambda c: c.task_count >= TASK_COLLECTOR_THRESHOLD),
    BadgeRule("logger_novice", lambda c: c.progress_log_count >= LOGGER_NOVICE_THRESHOLD),
    BadgeRule("logger_master", lambda c: c.progress_log_count >= LOGGER_MASTER_THRESHOLD),
    BadgeRule("explorer", lambda c: c.action is AchievementAction.ACCEPT_RECOMMENDATION),
)


def default_rule_set(registry: BadgeRegistry) -> BadgeRuleSet:
    return BadgeRuleSet(DEFAULT_RULES, registry)
