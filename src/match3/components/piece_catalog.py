from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Tuple, Union

from match3.components.piece import PieceType
from match3.errors import ConfigurationError

CatalogEntry = Union[PieceType, Mapping[str, Any], Tuple[Hashable, int]]


@dataclass(slots=True)
class PieceCatalog:
    """Canonical piece type definitions for one board.

    ``spawnable`` is the subset the factory may draw from; it defaults to every
    defined type and is never empty.
    """
    types: Dict[Hashable, PieceType]
    spawnable: List[Hashable] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.types:
            raise ConfigurationError("Piece catalog must define at least one piece type")
        for type_id, piece_type in self.types.items():
            if piece_type.type_id != type_id:
                raise ConfigurationError(
                    f"Catalog key {type_id!r} does not match piece type id {piece_type.type_id!r}"
                )
            if not isinstance(piece_type.score, int) or piece_type.score <= 0:
                raise ConfigurationError(
                    f"Piece type {type_id!r} needs a positive integer score, got {piece_type.score!r}"
                )
        if self.spawnable:
            self.spawnable = self._filter(self.spawnable) or list(self.types.keys())
        else:
            self.spawnable = list(self.types.keys())

    @classmethod
    def from_entries(cls, entries: Iterable[CatalogEntry]) -> "PieceCatalog":
        """Build a catalog from PieceType objects, ``{"type_id", "score", "asset"}`` dicts or ``(id, score)`` pairs."""
        types: Dict[Hashable, PieceType] = {}
        for entry in entries:
            if isinstance(entry, PieceType):
                piece_type = entry
            elif isinstance(entry, Mapping):
                if "type_id" not in entry:
                    raise ConfigurationError(f"Catalog entry is missing 'type_id': {dict(entry)!r}")
                piece_type = PieceType(
                    type_id=entry["type_id"],
                    score=entry.get("score", 1),
                    asset=entry.get("asset"),
                )
            else:
                try:
                    type_id, score = entry
                except (TypeError, ValueError):
                    raise ConfigurationError(f"Unsupported catalog entry: {entry!r}") from None
                piece_type = PieceType(type_id=type_id, score=score)
            if piece_type.type_id in types:
                raise ConfigurationError(f"Duplicate piece type id {piece_type.type_id!r}")
            types[piece_type.type_id] = piece_type
        return cls(types=types)

    def __len__(self) -> int:
        return len(self.types)

    def __contains__(self, type_id: Hashable) -> bool:
        return type_id in self.types

    def get(self, type_id: Hashable) -> PieceType:
        try:
            return self.types[type_id]
        except KeyError:
            raise ConfigurationError(f"Unknown piece type {type_id!r}") from None

    def score_for(self, type_id: Hashable) -> int:
        return self.get(type_id).score

    def asset_for(self, type_id: Hashable) -> Any:
        return self.get(type_id).asset

    def spawnable_types(self) -> List[Hashable]:
        return list(self.spawnable)

    def defined_types(self) -> List[Hashable]:
        return list(self.types.keys())

    def _filter(self, type_ids: Iterable[Hashable]) -> List[Hashable]:
        # Preserve order while dropping unknown and repeated ids.
        seen: set = set()
        filtered: List[Hashable] = []
        for type_id in type_ids:
            if type_id in self.types and type_id not in seen:
                filtered.append(type_id)
                seen.add(type_id)
        return filtered
