from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional, Sequence

from project_analytics.core.config.engine_config import DEFAULT_CONFIG
from project_analytics.core.errors import CycleDetected, InvalidInputError
from project_analytics.core.model import Phase
from project_analytics.core.validate.validate_inputs import check_phases, ensure_valid

logger = logging.getLogger(__name__)


class PhaseGraph:
    """Single-predecessor dependency forest over a flat phase list.

    Every phase names at most one predecessor, so the structure is a forest
    of chains and branches. Construction rejects duplicate ids, references to
    unknown phases and negative planned durations; cycles are reported by
    detect_cycle(), which every schedule pass must call first.
    """

    def __init__(
        self,
        phases: Sequence[Phase],
        default_duration_days: int = DEFAULT_CONFIG.default_duration_days,
        file: Optional[str] = None,
    ):
        self.phases: tuple[Phase, ...] = tuple(phases)
        self.default_duration_days = default_duration_days
        self.file = file

        errors = check_phases(self.phases, file)
        self._by_id: dict[str, Phase] = {}
        self._index: dict[str, int] = {}
        for i, p in enumerate(self.phases):
            if p.id in self._by_id:
                errors.append(
                    InvalidInputError(
                        code="E_DUPLICATE_ID",
                        message=f"duplicate phase id: {p.id}",
                        file=file,
                        path=f"phases[{i}].id",
                    )
                )
                continue
            self._by_id[p.id] = p
            self._index[p.id] = i

        # phase id -> phases that depend on it, in input order
        self._successors: dict[str, list[str]] = defaultdict(list)
        for i, p in enumerate(self.phases):
            dep = p.depends_on_phase_id
            if dep is None:
                continue
            if dep not in self._by_id:
                errors.append(
                    InvalidInputError(
                        code="E_UNKNOWN_DEPENDENCY",
                        message=f"depends_on_phase_id references unknown phase: {dep}",
                        file=file,
                        path=f"phases[{i}].depends_on_phase_id",
                    )
                )
                continue
            self._successors[dep].append(p.id)

        ensure_valid(errors)

    def __len__(self) -> int:
        return len(self.phases)

    def get(self, phase_id: str) -> Phase:
        return self._by_id[phase_id]

    def predecessor_of(self, phase_id: str) -> Optional[str]:
        return self._by_id[phase_id].depends_on_phase_id

    def successors_of(self, phase_id: str) -> list[str]:
        return list(self._successors.get(phase_id, []))

    def root_phases(self) -> list[Phase]:
        return [p for p in self.phases if p.depends_on_phase_id is None]

    def terminal_phases(self) -> list[Phase]:
        return [p for p in self.phases if not self._successors.get(p.id)]

    def duration(self, phase: Phase) -> int:
        """Duration in whole days. Milestones take no time."""
        if phase.is_milestone:
            return 0
        if phase.planned_start is None or phase.planned_end is None:
            logger.debug("phase %s has no planned dates; using %d days", phase.id, self.default_duration_days)
            return self.default_duration_days
        return max(1, (phase.planned_end - phase.planned_start).days)

    def detect_cycle(self) -> list[str]:
        """Return phase ids in topological order (each phase after its predecessor).

        Raises CycleDetected when a phase transitively depends on itself.
        Order is stable: it follows input order wherever dependencies allow.
        """
        WHITE, GRAY, BLACK = 0, 1, 2
        state: dict[str, int] = {pid: WHITE for pid in self._by_id}
        order: list[str] = []

        # Walk predecessor links rather than successors so a cycle with no
        # root at all (A -> B -> A) is still visited.
        for start in self._by_id:
            if state[start] != WHITE:
                continue
            path: list[str] = []
            cur: Optional[str] = start
            while cur is not None and state[cur] == WHITE:
                state[cur] = GRAY
                path.append(cur)
                cur = self._by_id[cur].depends_on_phase_id
            if cur is not None and state[cur] == GRAY:
                cycle = path[path.index(cur):]
                cycle.reverse()
                cycle.append(cycle[0])
                logger.debug("cycle detected through %s", cur)
                raise CycleDetected.for_cycle(
                    cycle,
                    file=self.file,
                    path=f"phases[{self._index[cycle[0]]}].depends_on_phase_id",
                )
            for pid in reversed(path):
                state[pid] = BLACK
                order.append(pid)

        return order
