"""
Technician Assignment Policies
==============================

Pluggable strategies for picking which active technician of a role receives
a newly routed ticket.
"""

import random
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Optional, Sequence

from cafm.core import ConfigurationException
from cafm.tickets.domain.entities import Technician


class IAssignmentPolicy(ABC):
    """Chooses one technician from the candidates for a role."""

    @abstractmethod
    def choose(self, role: str, candidates: Sequence[Technician]) -> Optional[Technician]:
        """Return the chosen technician, or None when there are no candidates."""


class RandomAssignmentPolicy(IAssignmentPolicy):
    """Uniform random pick."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def choose(self, role: str, candidates: Sequence[Technician]) -> Optional[Technician]:
        if not candidates:
            return None
        return self._rng.choice(list(candidates))


class RoundRobinAssignmentPolicy(IAssignmentPolicy):
    """
    Rotates through technicians of each role.

    Candidates are ordered by user_id so the rotation is stable while the
    roster is unchanged. The per-role counters are shared between request
    handlers and guarded by a lock.
    """

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def choose(self, role: str, candidates: Sequence[Technician]) -> Optional[Technician]:
        if not candidates:
            return None

        ordered = sorted(candidates, key=lambda t: t.user_id)
        with self._lock:
            index = self._counters[role] % len(ordered)
            self._counters[role] += 1
        return ordered[index]


def build_assignment_policy(strategy: str) -> IAssignmentPolicy:
    """
    Create the policy named by configuration.

    Raises:
        ConfigurationException: If the strategy is unknown
    """
    if strategy == "random":
        return RandomAssignmentPolicy()
    if strategy == "round_robin":
        return RoundRobinAssignmentPolicy()
    raise ConfigurationException(f"Unknown assignment strategy: {strategy}")
