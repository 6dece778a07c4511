"""Texas Hold'em hand engine."""
