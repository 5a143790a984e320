"""
Data loading — entity catalog, trait matrix, trait catalog and game config.

Entity files are JSON arrays of ``{name, id?, types, stats}``; the name is the
key used by the trait matrix. Trait-matrix files use the column layout
``{"pokemon_names": [...], "traits": {trait: [bool, ...]}}`` or a plain nested
mapping ``{trait: {entity: bool}}``.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Tuple, Union

from pydantic import ValidationError

from guess_kernel.catalog.matrix import TraitMatrix
from guess_kernel.catalog.traits import TraitCatalog
from guess_kernel.errors import ConfigurationError, DataLoadError
from guess_kernel.models.catalog import Entity
from guess_kernel.models.config import GameConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
BUNDLED_ENTITIES = DATA_DIR / "pokemon.json"
BUNDLED_MATRIX = DATA_DIR / "trait-matrix.json"


def _read_json(path: PathLike) -> Any:
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as e:
        raise DataLoadError(f"Data file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON in {path}: {e}") from e


def parse_entities(raw: Any) -> List[Entity]:
    """Turn the raw entity array into Entity models, preserving order."""
    if not isinstance(raw, list):
        raise DataLoadError("Entity data must be a JSON array")

    entities: List[Entity] = []
    seen = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not item.get("name"):
            raise DataLoadError(f"Entity #{index} has no name")
        name = str(item["name"])
        if name in seen:
            raise DataLoadError(f"Duplicate entity name: {name}")
        seen.add(name)
        try:
            entities.append(Entity(
                id=name,
                display_name=item.get("display_name") or name.title(),
                number=item.get("id"),
                types=[str(t).lower() for t in item.get("types") or []],
                stats=item.get("stats") or {},
            ))
        except ValidationError as e:
            raise DataLoadError(f"Entity {name!r} is invalid: {e}") from e
    return entities


def parse_trait_matrix(raw: Any) -> TraitMatrix:
    """Accept either the column layout or a nested ``trait → entity → bool`` mapping."""
    if not isinstance(raw, dict):
        raise DataLoadError("Trait matrix must be a JSON object")

    if "traits" in raw:
        names = raw.get("pokemon_names", raw.get("entity_names"))
        if not isinstance(names, list):
            raise DataLoadError("Column-layout trait matrix needs an entity name list")
        traits = raw["traits"]
        if not isinstance(traits, dict):
            raise DataLoadError("'traits' must map trait keys to value arrays")
        for trait, values in traits.items():
            if not isinstance(values, list):
                raise DataLoadError(f"Trait {trait!r} must be an array")
            if len(values) != len(names):
                logger.warning(
                    "Trait %s has %d values for %d entities; missing entries read as False",
                    trait, len(values), len(names),
                )
        return TraitMatrix.from_columns(names, traits)

    for trait, row in raw.items():
        if not isinstance(row, dict):
            raise DataLoadError(f"Trait {trait!r} must map entity names to booleans")
    return TraitMatrix(raw)


def load_entities(path: PathLike) -> List[Entity]:
    entities = parse_entities(_read_json(path))
    logger.info("Loaded %d entities from %s", len(entities), path)
    return entities


def load_trait_matrix(path: PathLike) -> TraitMatrix:
    matrix = parse_trait_matrix(_read_json(path))
    logger.info("Loaded %d traits from %s", len(matrix), path)
    return matrix


def load_trait_catalog(path: PathLike) -> TraitCatalog:
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise DataLoadError("Trait catalog must be a JSON object")
    try:
        return TraitCatalog.from_mapping(raw)
    except (ValidationError, TypeError) as e:
        raise DataLoadError(f"Invalid trait catalog in {path}: {e}") from e


def load_config(path: PathLike) -> GameConfig:
    """Load a GameConfig from a JSON file."""
    try:
        raw = _read_json(path)
    except DataLoadError as e:
        raise ConfigurationError(str(e)) from e
    try:
        return GameConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


def load_bundled() -> Tuple[List[Entity], TraitMatrix]:
    """The Pokémon data set shipped with the package."""
    return load_entities(BUNDLED_ENTITIES), load_trait_matrix(BUNDLED_MATRIX)
