"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator

from .constants import HAND_SIZE, MIN_PLAYERS, DEFAULT_WINNING_SCORE


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    hand_size: int = Field(
        default=HAND_SIZE,
        ge=1,
        le=20,
        description="Number of white cards each player holds"
    )
    min_players: int = Field(
        default=MIN_PLAYERS,
        ge=3,
        le=20,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=20,
        ge=3,
        le=50,
        description="Maximum number of players allowed"
    )
    winning_score: int = Field(
        default=DEFAULT_WINNING_SCORE,
        ge=1,
        le=50,
        description="Score that ends the game"
    )
    allow_player_joins_after_start: bool = Field(
        default=False,
        description="Whether players may join a game that is already running"
    )
    anonymize_submissions: bool = Field(
        default=False,
        description="Hide who played each submission until the round is judged"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', MIN_PLAYERS)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    def cards_needed(self, player_count: int) -> int:
        """White cards needed for the opening deal."""
        return player_count * self.hand_size


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
