from typing import Any, Dict, List, Optional

from .dto import MOVES_PER_MEMBER, CreatureProfile, TeamMember
from .errors import NetworkError, ValidationError
from .logging_setup import get_logger
from .normalizer import normalize_profile

LOGGER = get_logger(__name__)


class MoveSelection:
    """Ordered set of at most four move names.

    Toggling a selected move removes it; toggling a new one when four are
    already chosen does nothing.
    """

    def __init__(self, limit: int = MOVES_PER_MEMBER):
        self.limit = limit
        self._moves: List[str] = []

    def toggle(self, name: str) -> List[str]:
        if name in self._moves:
            self._moves.remove(name)
        elif len(self._moves) < self.limit:
            self._moves.append(name)
        return self.moves

    def clear(self) -> None:
        self._moves = []

    @property
    def moves(self) -> List[str]:
        return list(self._moves)

    @property
    def complete(self) -> bool:
        return len(self._moves) == self.limit

    def __len__(self) -> int:
        return len(self._moves)


class TeamComposer:
    """Pick four moves for one creature and hand the result to a team store.

    `team_store` is anything with `add(member) -> team`: the in-process
    TeamService or a TeamStoreClient talking to a remote store. Store errors
    propagate unchanged and leave the selection and `team` as they were.
    """

    def __init__(self, profile: CreatureProfile, team_store: Any):
        self.profile = profile
        self.team_store = team_store
        self.selection = MoveSelection()
        self.team: Optional[List[Dict[str, Any]]] = None

    def toggle_move(self, name: str) -> List[str]:
        return self.selection.toggle(name)

    def build_member(self, moves: Optional[List[str]] = None) -> TeamMember:
        chosen = list(self.selection.moves if moves is None else moves)
        if len(chosen) != MOVES_PER_MEMBER:
            raise ValidationError(f'Select exactly {MOVES_PER_MEMBER} moves.')
        if len(set(chosen)) != len(chosen):
            raise ValidationError('Each move can only be selected once.')
        unknown = [m for m in chosen if m not in self.profile.moves]
        if unknown:
            raise ValidationError(f"{self.profile.name} cannot learn: {', '.join(unknown)}")
        return TeamMember(detail=self.profile.detail, moves=chosen)

    def submit(self, moves: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Validate the move selection and add the creature to the team.

        `moves` overrides the toggled selection when given.
        """
        member = self.build_member(moves)
        LOGGER.info('adding %s (#%d) to team with moves %s', member.detail.name, member.id, member.moves)
        team = self.team_store.add(member)
        self.team = team
        return team


def load_profile(client: Any, poke_id) -> CreatureProfile:
    """Fetch the extended record behind a card click.

    The generation label comes from a second request to the species
    record; when that request fails the profile is returned without it.
    """
    raw = client.fetch_detail_by_id(poke_id)
    species = None
    species_url = (raw.get('species') or {}).get('url') if isinstance(raw, dict) else None
    if species_url:
        try:
            species = client.fetch_species(species_url)
        except NetworkError as e:
            LOGGER.warning('species lookup for %s failed: %s', poke_id, e)
    return normalize_profile(raw, species)
