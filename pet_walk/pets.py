"""Pet profiles available for walk tracking.

Pet records live in the app's document store; this module reads an exported
JSON list of them. Field names follow the export (``petType``, ``ownerId``,
``weightKg``); snake_case spellings are accepted too.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pet_walk.models import PetRef

logger = logging.getLogger(__name__)


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = raw.get(k)
        if v not in (None, ""):
            return v
    return None


def _opt_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def pet_from_dict(raw: dict[str, Any]) -> PetRef:
    """Build a PetRef from one exported pet record.

    Raises:
        ValueError: If ``id``/``name`` are missing or numbers are malformed.
    """

    pet_id = _first(raw, "id")
    name = _first(raw, "name")
    if pet_id is None or name is None:
        raise ValueError(f"pet record needs 'id' and 'name': {raw!r}")
    try:
        weight = _opt_float(_first(raw, "weightKg", "weight_kg", "weight"))
        age = _opt_float(_first(raw, "age", "age_years"))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"bad number in pet record {pet_id!r}: {exc}") from exc
    owner = _first(raw, "ownerId", "owner_id")
    return PetRef(
        id=str(pet_id),
        name=str(name),
        species=str(_first(raw, "petType", "species") or "other").lower(),
        weight_kg=weight,
        breed=str(_first(raw, "breed") or ""),
        age_years=age,
        owner_id=None if owner is None else str(owner),
    )


class PetDirectory:
    """In-memory pet lookup, loaded from an exported JSON file."""

    def __init__(self, pets: Iterable[PetRef]) -> None:
        self._pets: dict[str, PetRef] = {}
        for pet in pets:
            self._pets[pet.id] = pet

    @classmethod
    def from_json(cls, path: str | Path) -> PetDirectory:
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"pets file {p} is not valid JSON: {exc}") from exc
        if isinstance(data, dict):
            data = data.get("pets", [])
        if not isinstance(data, list):
            raise ValueError(f"pets file {p} must contain a list of pets")
        directory = cls(pet_from_dict(r) for r in data)
        logger.info("loaded %s pets from %s", len(directory), p)
        return directory

    def __len__(self) -> int:
        return len(self._pets)

    def get(self, pet_id: str) -> PetRef:
        try:
            return self._pets[pet_id]
        except KeyError as exc:
            raise KeyError(f"unknown pet id {pet_id!r}") from exc

    def for_owner(self, owner_id: str) -> list[PetRef]:
        return [p for p in self._pets.values() if p.owner_id == owner_id]

    def all(self) -> list[PetRef]:
        return list(self._pets.values())
