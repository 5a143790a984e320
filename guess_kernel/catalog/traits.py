"""
Trait Catalog — static reference data for every askable trait.

Loaded once per process and read-only thereafter. Each trait carries an
explicit category tag, a priority weight (how recognizable and discriminating
the question is for a human player), a reliability weight (how much an answer
counts when blending candidate confidence) and the question text.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from guess_kernel.models.catalog import TraitCategory, TraitDefinition


# Iteration order of this table is the selector's tie-breaking order.
DEFAULT_PRIORITIES: Dict[str, float] = {
    # Essential variety: humans always know these
    "starter_pokemon": 10.0,
    "final_evolution": 9.5,
    "is_legendary": 9.0,
    "is_mythical": 8.5,
    "iconic_pokemon": 8.0,

    # Types
    "type_fire": 7.5,
    "type_water": 7.5,
    "type_grass": 7.5,
    "type_electric": 7.0,
    "type_psychic": 7.0,
    "type_dragon": 6.8,
    "type_flying": 6.5,
    "type_fighting": 6.3,
    "type_poison": 6.0,
    "type_ground": 5.8,
    "type_rock": 5.5,
    "type_bug": 5.3,
    "type_ghost": 6.5,
    "type_steel": 5.0,
    "type_ice": 5.2,
    "type_dark": 5.8,
    "type_fairy": 6.0,
    "type_normal": 4.5,

    # Physical characteristics
    "size_large": 4.8,
    "size_small": 4.7,
    "size_medium": 4.0,
    "weight_heavy": 4.5,
    "weight_light": 4.3,

    # Colors
    "color_red": 4.2,
    "color_blue": 4.2,
    "color_yellow": 4.2,
    "color_green": 4.0,
    "color_purple": 3.8,
    "color_orange": 3.7,
    "color_pink": 3.5,
    "color_brown": 3.2,
    "color_black": 3.8,
    "color_white": 3.6,
    "color_gray": 3.0,

    # Habitats
    "habitat_cave": 3.5,
    "habitat_forest": 3.4,
    "habitat_water": 3.6,
    "habitat_mountain": 3.2,
    "habitat_grassland": 3.0,
    "habitat_urban": 3.1,
    "habitat_desert": 2.8,
    "habitat_sea": 3.3,

    # Stat extremes
    "high_attack": 2.8,
    "high_defense": 2.7,
    "high_hp": 2.6,
    "high_speed": 2.9,
    "high_sp_attack": 2.5,
    "high_sp_defense": 2.4,
    "low_attack": 2.2,
    "low_defense": 2.2,
    "low_hp": 2.1,
    "low_speed": 2.3,

    # Evolution
    "evolves_from_baby": 3.3,
    "has_evolution": 3.2,
    "three_stage_evolution": 3.0,
    "branch_evolution": 2.8,

    # Game mechanics
    "can_mega_evolve": 2.5,
    "has_alolan_form": 2.3,
    "has_galarian_form": 2.2,
    "trade_evolution": 2.0,
    "stone_evolution": 2.1,
    "level_evolution": 1.8,

    # Special attributes
    "dual_type": 2.7,
    "single_type": 2.5,
    "genderless": 2.4,
    "always_male": 2.2,
    "always_female": 2.2,

    # Competitive tiers
    "uber_tier": 1.9,
    "ou_tier": 1.7,
    "uu_tier": 1.5,
    "ru_tier": 1.3,
    "nu_tier": 1.2,
    "pu_tier": 1.1,
}

DEFAULT_RELIABILITY: Dict[str, float] = {
    "starter_pokemon": 2.5,
    "is_legendary": 2.0,
    "is_mythical": 2.0,
    "final_evolution": 1.8,

    "type_fire": 1.5, "type_water": 1.5, "type_grass": 1.5,
    "type_electric": 1.5, "type_psychic": 1.5, "type_dragon": 1.5,
    "type_flying": 1.3, "type_fighting": 1.3, "type_poison": 1.3,

    "size_large": 1.2, "size_small": 1.2,
    "color_red": 1.1, "color_blue": 1.1, "color_yellow": 1.1,

    "habitat_cave": 1.0, "habitat_forest": 1.0, "habitat_water": 1.0,

    # Casual players misjudge stats
    "high_attack": 0.8, "high_defense": 0.8, "high_speed": 0.8,
}

DEFAULT_QUESTIONS: Dict[str, str] = {
    "type_fire": "Is it a Fire-type Pokémon?",
    "type_water": "Is it a Water-type Pokémon?",
    "type_grass": "Is it a Grass-type Pokémon?",
    "type_electric": "Is it an Electric-type Pokémon?",
    "type_psychic": "Is it a Psychic-type Pokémon?",
    "type_dragon": "Is it a Dragon-type Pokémon?",
    "type_flying": "Is it a Flying-type Pokémon?",
    "type_fighting": "Is it a Fighting-type Pokémon?",
    "type_poison": "Is it a Poison-type Pokémon?",
    "type_ground": "Is it a Ground-type Pokémon?",
    "type_rock": "Is it a Rock-type Pokémon?",
    "type_bug": "Is it a Bug-type Pokémon?",
    "type_ghost": "Is it a Ghost-type Pokémon?",
    "type_ice": "Is it an Ice-type Pokémon?",
    "type_normal": "Is it a Normal-type Pokémon?",

    "final_evolution": "Is it a final evolution (can't evolve further)?",
    "starter_pokemon": "Is it a starter Pokémon?",
    "is_legendary": "Is it a legendary Pokémon?",
    "is_mythical": "Is it a mythical Pokémon?",
    "iconic_pokemon": "Is it an iconic/famous Pokémon?",

    "high_hp": "Does it have high HP?",
    "high_attack": "Does it have high Attack?",
    "high_defense": "Does it have high Defense?",
    "high_sp_attack": "Does it have high Special Attack?",
    "high_sp_defense": "Does it have high Special Defense?",
    "high_speed": "Does it have high Speed?",

    "size_large": "Is it large in size?",
    "size_medium": "Is it medium in size?",
    "size_small": "Is it small in size?",
    "weight_heavy": "Is it heavy?",
    "weight_light": "Is it light?",

    "color_red": "Is it primarily red in color?",
    "color_blue": "Is it primarily blue in color?",
    "color_green": "Is it primarily green in color?",
    "color_yellow": "Is it primarily yellow in color?",
    "color_brown": "Is it primarily brown in color?",
    "color_purple": "Is it primarily purple in color?",

    "habitat_grassland": "Does it live in grasslands?",
    "habitat_forest": "Does it live in forests?",
    "habitat_mountain": "Does it live in mountains?",
    "habitat_cave": "Does it live in caves?",
    "habitat_sea": "Does it live in the sea?",
    "habitat_urban": "Does it live in urban areas?",
}

_PREFIX_CATEGORIES = (
    ("type_", TraitCategory.TYPE),
    ("habitat_", TraitCategory.HABITAT),
    ("color_", TraitCategory.COLOR),
    ("high_", TraitCategory.STAT),
    ("size_", TraitCategory.PHYSICAL),
    ("weight_", TraitCategory.PHYSICAL),
)


def infer_category(key: str) -> TraitCategory:
    """
    Derive the category tag for a trait key from its naming convention.

    Only used while building catalogs; everything downstream reads the tag
    stored on the TraitDefinition.
    """
    for prefix, category in _PREFIX_CATEGORIES:
        if key.startswith(prefix):
            return category
    return TraitCategory.OTHER


class TraitCatalog:
    """
    Immutable, ordered collection of trait definitions.

    Iteration follows insertion order, which the question selector relies on
    for deterministic tie-breaking.
    """

    def __init__(self, definitions: Iterable[TraitDefinition]):
        table: Dict[str, TraitDefinition] = {}
        for definition in definitions:
            table[definition.key] = definition
        self._definitions: Mapping[str, TraitDefinition] = MappingProxyType(table)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Mapping]) -> "TraitCatalog":
        """
        Build a catalog from ``{trait: {category, priority, reliability, question}}``.

        Every sub-field is optional. A missing category is inferred from the
        key so that hand-written catalogs stay terse.
        """
        definitions = []
        for key, fields in raw.items():
            fields = dict(fields or {})
            fields.setdefault("category", infer_category(key))
            definitions.append(TraitDefinition(key=key, **fields))
        return cls(definitions)

    @classmethod
    def default(cls) -> "TraitCatalog":
        """The built-in Pokémon catalog."""
        return cls(
            TraitDefinition(
                key=key,
                category=infer_category(key),
                priority=priority,
                reliability=DEFAULT_RELIABILITY.get(key, 1.0),
                question=DEFAULT_QUESTIONS.get(key),
            )
            for key, priority in DEFAULT_PRIORITIES.items()
        )

    def get(self, key: str) -> TraitDefinition:
        """Definition for a trait; unknown keys get the documented defaults."""
        definition = self._definitions.get(key)
        if definition is None:
            return TraitDefinition(key=key)
        return definition

    def priority(self, key: str) -> float:
        return self.get(key).priority

    def reliability(self, key: str) -> float:
        return self.get(key).reliability

    def category(self, key: str) -> TraitCategory:
        return self.get(key).category

    def question_text(self, key: str) -> str:
        return self.get(key).question_text

    def keys(self) -> List[str]:
        return list(self._definitions)

    def definitions(self) -> List[TraitDefinition]:
        return list(self._definitions.values())

    def by_category(self, category: TraitCategory) -> List[TraitDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    def __iter__(self) -> Iterator[TraitDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, key: object) -> bool:
        return key in self._definitions
