from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List

from .errors import ValidationError

STAT_KEYS = ('hp', 'attack', 'defense', 'special-attack', 'special-defense', 'speed')

MOVES_PER_MEMBER = 4


class SortOrder(str, Enum):
    ASC = 'asc'
    DESC = 'desc'

    def flipped(self) -> 'SortOrder':
        return SortOrder.ASC if self is SortOrder.DESC else SortOrder.DESC


class AcquisitionMode(str, Enum):
    SEARCH = 'search'
    GLOBAL_SORT = 'global_sort'
    GLOBAL_TYPE_FILTER = 'global_type_filter'
    DEFAULT_PAGINATED = 'default_paginated'


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "url": self.url}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'CatalogEntry':
        return CatalogEntry(name=str(d.get('name') or ''), url=str(d.get('url') or ''))


@dataclass(frozen=True)
class CreatureDetail:
    id: int
    name: str
    image: Optional[str] = None
    types: List[str] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    def stat(self, key: str) -> int:
        return self.stats.get(key, 0) or 0

    def has_type(self, type_name: str) -> bool:
        return type_name in self.types

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "types": list(self.types),
            "stats": {k: self.stat(k) for k in STAT_KEYS},
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'CreatureDetail':
        stats = d.get('stats') or {}
        return CreatureDetail(
            id=int(d.get('id')),
            name=d.get('name'),
            image=d.get('image'),
            types=list(d.get('types') or []),
            stats={k: int(stats.get(k) or 0) for k in STAT_KEYS},
        )


@dataclass(frozen=True)
class CreatureProfile:
    """Extended record shown when a card is opened.

    Carries everything CreatureDetail has plus the move list the team
    composer picks from.
    """

    detail: CreatureDetail
    height: Optional[int] = None
    weight: Optional[int] = None
    abilities: List[str] = field(default_factory=list)
    moves: List[str] = field(default_factory=list)
    sprites: Dict[str, Optional[str]] = field(default_factory=dict)
    species_url: Optional[str] = None
    generation: Optional[str] = None

    @property
    def id(self) -> int:
        return self.detail.id

    @property
    def name(self) -> str:
        return self.detail.name

    def to_dict(self) -> Dict[str, Any]:
        d = self.detail.to_dict()
        d.update({
            "height": self.height,
            "weight": self.weight,
            "abilities": list(self.abilities),
            "moves": list(self.moves),
            "sprites": dict(self.sprites),
            "species_url": self.species_url,
            "generation": self.generation,
        })
        return d


@dataclass(frozen=True)
class TeamMember:
    detail: CreatureDetail
    moves: List[str] = field(default_factory=list)

    def __post_init__(self):
        if len(self.moves) != MOVES_PER_MEMBER:
            raise ValidationError(f'A team member needs exactly {MOVES_PER_MEMBER} moves, got {len(self.moves)}.')

    @property
    def id(self) -> int:
        return self.detail.id

    def to_dict(self) -> Dict[str, Any]:
        d = self.detail.to_dict()
        d["moves"] = list(self.moves)
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'TeamMember':
        return TeamMember(detail=CreatureDetail.from_dict(d), moves=list(d.get('moves') or []))


@dataclass
class ContactMessage:
    id: int
    name: str
    email: str
    subject: str
    message: str
    timestamp: str
    status: str = 'unread'

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
            "timestamp": self.timestamp,
            "status": self.status,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> 'ContactMessage':
        return ContactMessage(
            id=int(d.get('id')),
            name=d.get('name'),
            email=d.get('email'),
            subject=d.get('subject'),
            message=d.get('message'),
            timestamp=d.get('timestamp'),
            status=d.get('status') or 'unread',
        )
