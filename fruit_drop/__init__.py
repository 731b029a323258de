"""
Fruit Drop
==========

A falling-fruit merge game. Same-level fruits that touch fuse into the next
level and score points; the game ends when fruits stay above the danger line
for too long.

Physics is delegated to pymunk; rendering and input to pygame. All tunable
parameters live in game_config.yaml.
"""
