"""Day vote tallying and voter order."""
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from nightfall.models.game import Game, Player


@dataclass
class VoteOutcome:
    """Result of a day vote."""
    counts: dict[int, int] = field(default_factory=dict)
    eliminated: Optional[int] = None

    @property
    def tied(self) -> bool:
        """True when ballots were cast but no single player led."""
        return bool(self.counts) and self.eliminated is None


def tally_votes(
    human_votes: dict[int, int],
    computer_votes: dict[int, Optional[int]]
) -> VoteOutcome:
    """Count ballots; a strict unique maximum is eliminated.

    Abstentions (None targets) are not counted. A tie for the top spot,
    or no ballots at all, eliminates nobody.
    """
    counts = Counter(human_votes.values())
    counts.update(target for target in computer_votes.values() if target is not None)

    outcome = VoteOutcome(counts=dict(counts))
    if not counts:
        return outcome

    top = counts.most_common()
    best_target, best_count = top[0]
    if len(top) == 1 or top[1][1] < best_count:
        outcome.eliminated = best_target
    return outcome


def next_human_voter(game: Game) -> Optional[Player]:
    """Lowest-ID living human who has not voted yet."""
    for player in game.get_alive_players():
        if player.is_human and player.id not in game.human_votes:
            return player
    return None


def next_computer_voter(game: Game) -> Optional[Player]:
    """Lowest-ID living computer player who has not been asked yet."""
    for player in game.get_alive_players():
        if not player.is_human and player.id not in game.computer_votes:
            return player
    return None


def vote_choices(game: Game, voter_id: int) -> list[int]:
    """Players a voter may vote out: anyone alive except themselves."""
    return [pid for pid in game.get_alive_ids() if pid != voter_id]
