"""
Duck Tower Package
==================

Deterministic simulation of the Duck Tower stacking game: ducks are dropped
onto a growing tower, landings are scored, the tower wobbles and may topple,
and every few landings the stack merges into a bigger base duck until the
level is cleared.

All tunable parameters are in game_config.yaml.
"""
