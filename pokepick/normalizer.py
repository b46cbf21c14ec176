"""Map raw catalog records onto the package's compact shapes.

Only `id` and `name` are mandatory. Every other field falls back to a
default when it is missing or has an unexpected shape, so an incomplete
record still renders as a card.
"""
import re
from typing import Any, Dict, List, Optional

from .dto import STAT_KEYS, CreatureDetail, CreatureProfile
from .errors import MalformedRecordError

_GENERATION_PREFIX = re.compile(r'^generation-', re.IGNORECASE)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _nested_name(item: Any, key: str) -> Optional[str]:
    # shapes like {"type": {"name": "grass"}} or {"move": {"name": "cut"}}
    name = _as_dict(_as_dict(item).get(key)).get('name')
    return name if isinstance(name, str) and name else None


def _image(sprites: Dict[str, Any]) -> Optional[str]:
    artwork = _as_dict(_as_dict(sprites.get('other')).get('official-artwork')).get('front_default')
    return artwork or sprites.get('front_default') or None


def _stats(raw_stats: Any) -> Dict[str, int]:
    found: Dict[str, int] = {}
    for s in _as_list(raw_stats):
        key = _nested_name(s, 'stat')
        if key in STAT_KEYS and key not in found:
            found[key] = _as_int(_as_dict(s).get('base_stat'))
    return {k: found.get(k, 0) for k in STAT_KEYS}


def normalize(raw: Any) -> CreatureDetail:
    """Build a CreatureDetail from a raw detail record.

    Raises MalformedRecordError when `id` or `name` is absent.
    """
    record = _as_dict(raw)
    if record.get('id') is None or not record.get('name'):
        raise MalformedRecordError('Detail record is missing id or name')
    try:
        poke_id = int(record['id'])
    except (TypeError, ValueError):
        raise MalformedRecordError(f"Detail record has a non-numeric id: {record['id']!r}")
    types = [t for t in (_nested_name(item, 'type') for item in _as_list(record.get('types'))) if t]
    return CreatureDetail(
        id=poke_id,
        name=str(record['name']),
        image=_image(_as_dict(record.get('sprites'))),
        types=types,
        stats=_stats(record.get('stats')),
    )


def generation_label(species: Any) -> Optional[str]:
    """'generation-iv' -> 'GEN IV'; None when the species record has no generation."""
    name = _nested_name(species, 'generation')
    if not name:
        return None
    return _GENERATION_PREFIX.sub('Gen ', name).upper()


def normalize_profile(raw: Any, species: Any = None) -> CreatureProfile:
    record = _as_dict(raw)
    detail = normalize(record)
    sprites = _as_dict(record.get('sprites'))
    moves = [m for m in (_nested_name(item, 'move') for item in _as_list(record.get('moves'))) if m]
    abilities = [a for a in (_nested_name(item, 'ability') for item in _as_list(record.get('abilities'))) if a]
    height = record.get('height')
    weight = record.get('weight')
    species_url = _as_dict(record.get('species')).get('url')
    return CreatureProfile(
        detail=detail,
        height=_as_int(height) if height is not None else None,
        weight=_as_int(weight) if weight is not None else None,
        abilities=abilities,
        # a move can be listed once per learn method; keep first occurrence
        moves=list(dict.fromkeys(moves)),
        sprites={
            'front_default': sprites.get('front_default'),
            'front_shiny': sprites.get('front_shiny'),
        },
        species_url=species_url if isinstance(species_url, str) else None,
        generation=generation_label(species) if species is not None else None,
    )
