"""Loop synthesis, clue derivation and the difficulty-tuned puzzle generator."""
