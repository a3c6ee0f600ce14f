"""Document formats exchanged with the outside world."""
