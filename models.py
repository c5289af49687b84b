import uuid
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import List, Optional

from flask_sqlalchemy import SQLAlchemy

from constants import (
    GAME_STATUS_SCHEDULED, OUTCOME_WINNER, OUTCOME_LOSER, SEEDING_SOURCE_MANUAL
)

db = SQLAlchemy()


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Dataclass for derived standings ---
@dataclass
class Standing:
    team_name: str
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0
    rank: int = 0
    pool_id: Optional[str] = None
    division_id: Optional[str] = None

    @property
    def point_differential(self) -> int:
        return self.points_for - self.points_against

    def to_dict(self) -> dict:
        return {
            'team_name': self.team_name,
            'wins': self.wins,
            'losses': self.losses,
            'ties': self.ties,
            'points_for': self.points_for,
            'points_against': self.points_against,
            'point_differential': self.point_differential,
            'games_played': self.games_played,
            'rank': self.rank,
            'pool_id': self.pool_id,
            'division_id': self.division_id,
        }


# --- Models ---
class Pool(db.Model):
    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    tournament_id = db.Column(db.String(64), nullable=False)
    division_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)
    teams = db.Column(db.JSON, nullable=False, default=list)
    advancement_count = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)
    games = db.relationship('Game', backref='pool', lazy=True, cascade="all, delete")

    def to_dict(self) -> dict:
        return {
            'id': self.id, 'tournament_id': self.tournament_id, 'division_id': self.division_id,
            'name': self.name, 'teams': list(self.teams or []), 'advancement_count': self.advancement_count,
        }

    def __repr__(self): return f'<Pool {self.name} ({len(self.teams or [])} teams)>'


class Bracket(db.Model):
    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    tournament_id = db.Column(db.String(64), nullable=False)
    division_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    seeding_source = db.Column(db.String(10), nullable=False, default=SEEDING_SOURCE_MANUAL)
    # [{position, team_name, source_pool_id, source_pool_rank, manual}]
    seeds = db.Column(db.JSON, nullable=False, default=list)
    source_pool_ids = db.Column(db.JSON, nullable=True)
    include_third_place = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)
    games = db.relationship('Game', backref='bracket', lazy=True, cascade="all, delete")

    def to_dict(self) -> dict:
        return {
            'id': self.id, 'tournament_id': self.tournament_id, 'division_id': self.division_id,
            'name': self.name, 'size': self.size, 'seeding_source': self.seeding_source,
            'seeds': [dict(seed) for seed in (self.seeds or [])],
            'source_pool_ids': self.source_pool_ids, 'include_third_place': self.include_third_place,
        }

    def __repr__(self): return f'<Bracket {self.name} (size {self.size}, {self.seeding_source})>'


class Game(db.Model):
    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    tournament_id = db.Column(db.String(64), nullable=False)
    division_id = db.Column(db.String(64), nullable=False, index=True)
    team_a = db.Column(db.String(100), nullable=True); team_b = db.Column(db.String(100), nullable=True)
    score_a = db.Column(db.Integer, nullable=False, default=0); score_b = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default=GAME_STATUS_SCHEDULED, index=True)
    start_time = db.Column(db.DateTime, nullable=True)
    bracket_id = db.Column(db.String(32), db.ForeignKey('bracket.id'), nullable=True, index=True)
    bracket_round = db.Column(db.String(30), nullable=True)
    bracket_round_number = db.Column(db.Integer, nullable=True)
    bracket_position = db.Column(db.Integer, nullable=True)
    bracket_game_number = db.Column(db.Integer, nullable=True)
    pool_id = db.Column(db.String(32), db.ForeignKey('pool.id'), nullable=True, index=True)
    pool_game_number = db.Column(db.Integer, nullable=True)
    game_label = db.Column(db.String(150), nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    incoming_links = db.relationship(
        'AdvancementLink', foreign_keys='AdvancementLink.target_game_id',
        back_populates='target_game', order_by='AdvancementLink.id',
        cascade="all, delete", lazy=True)
    outgoing_links = db.relationship(
        'AdvancementLink', foreign_keys='AdvancementLink.source_game_id',
        back_populates='source_game', order_by='AdvancementLink.id',
        cascade="all, delete", lazy=True)

    @property
    def depends_on_games(self) -> List[str]:
        return [link.source_game_id for link in self.incoming_links]

    @property
    def winner_advances_to(self) -> List[str]:
        return [link.target_game_id for link in self.outgoing_links if link.outcome == OUTCOME_WINNER]

    @property
    def loser_advances_to(self) -> List[str]:
        return [link.target_game_id for link in self.outgoing_links if link.outcome == OUTCOME_LOSER]

    def to_dict(self) -> dict:
        return {
            'id': self.id, 'tournament_id': self.tournament_id, 'division_id': self.division_id,
            'team_a': self.team_a, 'team_b': self.team_b, 'score_a': self.score_a, 'score_b': self.score_b,
            'status': self.status,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'bracket_id': self.bracket_id, 'bracket_round': self.bracket_round,
            'bracket_round_number': self.bracket_round_number, 'bracket_position': self.bracket_position,
            'bracket_game_number': self.bracket_game_number,
            'pool_id': self.pool_id, 'pool_game_number': self.pool_game_number, 'game_label': self.game_label,
            'depends_on_games': self.depends_on_games,
            'winner_advances_to': self.winner_advances_to,
            'loser_advances_to': self.loser_advances_to,
        }

    def __repr__(self): return f'<Game {self.game_label or self.id}: {self.team_a} vs {self.team_b}>'


class AdvancementLink(db.Model):
    """One edge of the advancement graph: the winner or loser of source fills a slot of target."""
    id = db.Column(db.Integer, primary_key=True)
    source_game_id = db.Column(db.String(32), db.ForeignKey('game.id'), nullable=False, index=True)
    target_game_id = db.Column(db.String(32), db.ForeignKey('game.id'), nullable=False, index=True)
    outcome = db.Column(db.String(10), nullable=False)
    resolved_team = db.Column(db.String(100), nullable=True)
    source_game = db.relationship('Game', foreign_keys=[source_game_id], back_populates='outgoing_links')
    target_game = db.relationship('Game', foreign_keys=[target_game_id], back_populates='incoming_links')
    __table_args__ = (db.UniqueConstraint('source_game_id', 'target_game_id', 'outcome', name='_source_target_outcome_uc'),)

    def __repr__(self): return f'<AdvancementLink {self.outcome} of {self.source_game_id} -> {self.target_game_id}>'
