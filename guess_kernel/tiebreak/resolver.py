"""
Tie Breaker — orders near-equal final candidates by distinctiveness.

Candidates whose confidence lies within ``epsilon`` of a group's first member
form a tie group. Within a group the most distinctive entity (famous, rare
type, extreme stats) is moved to the front; everything else keeps its order.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from guess_kernel.models.catalog import Entity
from guess_kernel.models.session import Candidate


ICONIC_ENTITIES: FrozenSet[str] = frozenset({
    "pikachu", "charizard", "blastoise", "venusaur", "mewtwo", "mew",
    "lugia", "ho-oh", "rayquaza", "arceus", "dialga", "palkia",
    "giratina", "reshiram", "zekrom", "kyurem", "xerneas", "yveltal",
})
RARE_TYPES: FrozenSet[str] = frozenset({"dragon", "ghost", "psychic", "electric"})

ICONIC_BONUS = 0.3
RARE_TYPE_BONUS = 0.2
HIGH_STAT_BONUS = 0.25
LOW_STAT_BONUS = 0.15
HIGH_STAT_THRESHOLD = 120
LOW_STAT_THRESHOLD = 30


class TieBreaker:
    """Resolves near-ties in a confidence-sorted candidate list."""

    def __init__(
        self,
        entities: Iterable[Entity],
        epsilon: float = 0.003,
        iconic: Optional[Iterable[str]] = None,
        rare_types: Optional[Iterable[str]] = None,
    ):
        self._entities: Dict[str, Entity] = {e.id: e for e in entities}
        self.epsilon = epsilon
        self.iconic = frozenset(
            name.lower() for name in (ICONIC_ENTITIES if iconic is None else iconic)
        )
        self.rare_types = frozenset(RARE_TYPES if rare_types is None else rare_types)

    def distinctiveness(self, entity_id: str) -> float:
        score = 0.0
        if entity_id.lower() in self.iconic:
            score += ICONIC_BONUS

        entity = self._entities.get(entity_id)
        if entity is None:
            return score

        for entity_type in entity.types:
            if entity_type in self.rare_types:
                score += RARE_TYPE_BONUS

        if entity.stats:
            values = list(entity.stats.values())
            if max(values) > HIGH_STAT_THRESHOLD:
                score += HIGH_STAT_BONUS
            if min(values) < LOW_STAT_THRESHOLD:
                score += LOW_STAT_BONUS
        return score

    def _pick_winner(self, group: Sequence[Candidate]) -> int:
        best_index = 0
        best_score = -1.0
        for index, candidate in enumerate(group):
            score = self.distinctiveness(candidate.entity_id)
            if score > best_score:
                best_index, best_score = index, score
        return best_index

    def resolve_close_ties(self, candidates: Sequence[Candidate]) -> List[Candidate]:
        """Return a copy of ``candidates`` with each tie group's most distinctive member first."""
        resolved: List[Candidate] = []
        i = 0
        while i < len(candidates):
            anchor = candidates[i].confidence
            j = i + 1
            while j < len(candidates) and abs(candidates[j].confidence - anchor) < self.epsilon:
                j += 1

            group = list(candidates[i:j])
            if len(group) > 1:
                winner = group.pop(self._pick_winner(group))
                resolved.append(winner)
            resolved.extend(group)
            i = j
        return resolved
