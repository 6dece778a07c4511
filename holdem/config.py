"""Engine configuration."""
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    """Read an integer env var, treating unset or empty as None."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass
class Config:
    """Engine configuration loaded from environment variables."""
    
    # Table defaults
    small_blind: int = int(os.getenv("SMALL_BLIND", "1"))
    big_blind: int = int(os.getenv("BIG_BLIND", "2"))
    starting_chips: int = int(os.getenv("STARTING_CHIPS", "1000"))
    min_players: int = int(os.getenv("MIN_PLAYERS", "2"))
    max_players: int = int(os.getenv("MAX_PLAYERS", "10"))
    
    # Deck shuffling (unset means a fresh unseeded source per deck)
    deck_seed: Optional[int] = _optional_int("DECK_SEED")
    
    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()
