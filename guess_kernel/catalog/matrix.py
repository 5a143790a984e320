"""Trait Matrix — the sparse ground truth ``trait × entity → bool``."""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping


class TraitMatrix:
    """
    Read-only boolean relation between traits and entities.

    The relation is sparse: an unknown trait or an entity missing from a trait
    row means the entity lacks the trait. That is never an error.
    """

    def __init__(self, rows: Mapping[str, Mapping[str, bool]]):
        self._rows: Mapping[str, Mapping[str, bool]] = MappingProxyType({
            trait: MappingProxyType({e: bool(v) for e, v in row.items()})
            for trait, row in rows.items()
        })

    @classmethod
    def from_columns(
        cls, entity_ids: List[str], traits: Mapping[str, Iterable]
    ) -> "TraitMatrix":
        """Build from the column layout ``{trait: [value per entity_id]}``."""
        rows: Dict[str, Dict[str, bool]] = {}
        for trait, values in traits.items():
            rows[trait] = {
                entity_id: bool(value)
                for entity_id, value in zip(entity_ids, values)
            }
        return cls(rows)

    def value(self, trait: str, entity_id: str) -> bool:
        """Whether an entity has a trait; missing entries resolve to False."""
        row = self._rows.get(trait)
        if row is None:
            return False
        return row.get(entity_id, False)

    def has_trait(self, trait: str) -> bool:
        """Whether the matrix carries a row for this trait at all."""
        return trait in self._rows

    def traits(self) -> List[str]:
        return list(self._rows)

    def entities_with(self, trait: str) -> List[str]:
        row = self._rows.get(trait, {})
        return [e for e, v in row.items() if v]

    def __len__(self) -> int:
        return len(self._rows)
