"""
Data models for the Doubles Match Scheduler.
Defines all data structures used throughout the application.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Iterable, Iterator, Tuple
from enum import Enum
import random

from courtmatch.core.config import (
    DEFAULT_SKILL_LEVEL, MALE_ALIASES, FEMALE_ALIASES
)


class Gender(Enum):
    MALE = "M"
    FEMALE = "F"


class StrategyKind(Enum):
    """Match construction strategies."""
    SKILL_BALANCED = "skill_balanced"
    RANDOM_BALANCED = "random_balanced"
    MIXED_GENDER = "mixed_gender"

    @classmethod
    def parse(cls, value) -> "StrategyKind":
        """Accept enum members, values, or the short names used by the session screens."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().replace("-", "_")
        aliases = {
            "level": cls.SKILL_BALANCED,
            "balanced": cls.SKILL_BALANCED,
            "random": cls.RANDOM_BALANCED,
            "mixed": cls.MIXED_GENDER,
        }
        if key in aliases:
            return aliases[key]
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown match strategy: {value!r}")


def normalize_level(level: Optional[str]) -> str:
    """Upper-case a skill code, falling back to the weakest tier when missing."""
    code = (level or "").strip().upper()
    return code or DEFAULT_SKILL_LEVEL


def parse_gender(value: Optional[str]) -> Optional[Gender]:
    key = (value or "").strip().lower()
    if key in MALE_ALIASES:
        return Gender.MALE
    if key in FEMALE_ALIASES:
        return Gender.FEMALE
    return None


@dataclass
class Player:
    id: str
    name: str
    skill_level: str = DEFAULT_SKILL_LEVEL
    gender: Optional[str] = None

    @property
    def gender_kind(self) -> Optional[Gender]:
        return parse_gender(self.gender)

    @property
    def is_male(self) -> bool:
        return self.gender_kind == Gender.MALE

    @property
    def is_female(self) -> bool:
        return self.gender_kind == Gender.FEMALE

    @property
    def label(self) -> str:
        return f"{self.name}({normalize_level(self.skill_level)})"

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Player):
            return self.id == other.id
        return False


@dataclass
class Team:
    """Two distinct players on the same side of the net."""
    player1: Player
    player2: Player

    def __post_init__(self):
        if self.player1.id == self.player2.id:
            raise ValueError(f"Player {self.player1.id} cannot partner themselves")

    @property
    def players(self) -> Tuple[Player, Player]:
        return (self.player1, self.player2)

    @property
    def player_ids(self) -> Tuple[str, str]:
        return (self.player1.id, self.player2.id)

    def has_player(self, player_id: str) -> bool:
        return player_id in self.player_ids

    def __str__(self):
        return f"{self.player1.label} & {self.player2.label}"


@dataclass
class Match:
    id: str
    team1: Team
    team2: Team
    court: int = 1

    def __post_init__(self):
        ids = self.player_ids
        if len(set(ids)) != len(ids):
            raise ValueError(f"Match {self.id} books the same player twice: {', '.join(ids)}")

    def __str__(self):
        return f"Court {self.court}: {self.team1} vs {self.team2}"

    @property
    def players(self) -> List[Player]:
        return [*self.team1.players, *self.team2.players]

    @property
    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    def involves_player(self, player_id: str) -> bool:
        return player_id in self.player_ids

    def shares_players_with(self, other: "Match") -> bool:
        return not set(self.player_ids).isdisjoint(other.player_ids)

    def team_of(self, player_id: str) -> Optional[Team]:
        if self.team1.has_player(player_id):
            return self.team1
        if self.team2.has_player(player_id):
            return self.team2
        return None

    def replace_player(self, old_id: str, new_player: Player) -> "Match":
        """Return a copy with ``old_id`` swapped out for ``new_player`` in the same slot."""
        players = [new_player if p.id == old_id else p for p in self.players]
        return self.with_players(players)

    def with_players(self, players: List[Player]) -> "Match":
        """Return a copy keeping id and court, seating players in slot order."""
        return Match(
            id=self.id,
            team1=Team(players[0], players[1]),
            team2=Team(players[2], players[3]),
            court=self.court,
        )

    def with_court(self, court: int) -> "Match":
        return Match(id=self.id, team1=self.team1, team2=self.team2, court=court)


@dataclass
class Budget:
    """Iteration cap for one engine phase."""
    max_attempts: int

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError("Budget max_attempts must be non-negative")


class ParticipationCounter:
    """
    Matches assigned per player for one scheduling run.

    Created at zero for every roster member and handed to each phase so the
    phases share one view of who still needs games.
    """

    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self._counts: Dict[str, int] = dict(counts or {})

    @classmethod
    def for_roster(cls, players: Iterable[Player]) -> "ParticipationCounter":
        return cls({p.id: 0 for p in players})

    @classmethod
    def from_matches(cls, players: Iterable[Player], matches: Iterable[Match]) -> "ParticipationCounter":
        counter = cls.for_roster(players)
        for match in matches:
            counter.record_match(match)
        return counter

    def __getitem__(self, player_id: str) -> int:
        return self._counts.get(player_id, 0)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._counts

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def add(self, player_id: str, amount: int = 1):
        self._counts[player_id] = self._counts.get(player_id, 0) + amount

    def release(self, player_id: str):
        self.add(player_id, -1)

    def record_match(self, match: Match):
        for player_id in match.player_ids:
            self.add(player_id)

    def below(self, players: Iterable[Player], target: int) -> List[Player]:
        return [p for p in players if self[p.id] < target]

    def zero(self, players: Iterable[Player]) -> List[Player]:
        return self.below(players, 1)

    def any_below(self, players: Iterable[Player], target: int) -> bool:
        return any(self[p.id] < target for p in players)

    def lowest(self, players: Iterable[Player], count: int,
               exclude: Iterable[str] = (), rng: Optional[random.Random] = None) -> List[Player]:
        """Pick ``count`` players with the fewest matches, shuffling ties when ``rng`` is given."""
        excluded = set(exclude)
        candidates = [p for p in players if p.id not in excluded]
        if rng is not None:
            rng.shuffle(candidates)
        candidates.sort(key=lambda p: self[p.id])
        return candidates[:count]

    def as_dict(self) -> Dict[str, int]:
        return dict(self._counts)


@dataclass
class Schedule:
    matches: List[Match] = field(default_factory=list)
    participation: Dict[str, int] = field(default_factory=dict)
    strategy: Optional[StrategyKind] = None
    courts: int = 1
    issues: List[str] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.matches)

    def get_player_matches(self, player_id: str) -> List[Match]:
        return [match for match in self.matches if match.involves_player(player_id)]

    def get_matches_by_court(self, court: int) -> List[Match]:
        return [match for match in self.matches if match.court == court]

    def unique_player_count(self) -> int:
        ids = set()
        for match in self.matches:
            ids.update(match.player_ids)
        return len(ids)

    def game_counts_by_label(self) -> Dict[str, int]:
        """Games per player keyed by ``name(LEVEL)``, as shown on the session board."""
        counts: Dict[str, int] = {}
        for match in self.matches:
            for player in match.players:
                counts[player.label] = counts.get(player.label, 0) + 1
        return counts


@dataclass
class SchedulingConstraint:
    constraint_type: str
    severity: str
    description: str
    affected_players: List[str] = field(default_factory=list)
    affected_matches: List[Match] = field(default_factory=list)
    penalty_score: float = 0.0


@dataclass
class ScheduleValidationResult:
    is_valid: bool
    hard_constraint_violations: List[SchedulingConstraint] = field(default_factory=list)
    soft_constraint_violations: List[SchedulingConstraint] = field(default_factory=list)
    total_penalty_score: float = 0.0

    def add_violation(self, constraint: SchedulingConstraint):
        if constraint.severity == 'hard':
            self.hard_constraint_violations.append(constraint)
            self.is_valid = False
        else:
            self.soft_constraint_violations.append(constraint)
        self.total_penalty_score += constraint.penalty_score

    def violations_of(self, constraint_type: str) -> List[SchedulingConstraint]:
        return [
            v for v in self.hard_constraint_violations + self.soft_constraint_violations
            if v.constraint_type == constraint_type
        ]

    def get_summary(self) -> str:
        summary = f"Schedule Valid: {self.is_valid}\n"
        summary += f"Hard Violations: {len(self.hard_constraint_violations)}\n"
        summary += f"Soft Violations: {len(self.soft_constraint_violations)}\n"
        summary += f"Total Penalty Score: {self.total_penalty_score:.2f}\n"
        return summary


@dataclass
class PlayerScheduleStats:
    """Statistics for a player's schedule."""
    player: Player
    total_matches: int = 0
    back_to_back: int = 0
    courts: List[int] = field(default_factory=list)
    partners: List[Player] = field(default_factory=list)
    opponents: List[Player] = field(default_factory=list)

    def unique_partner_count(self) -> int:
        return len({p.id for p in self.partners})
