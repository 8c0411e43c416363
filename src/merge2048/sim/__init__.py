"""Seeded policy rollouts and batch statistics over the game engine."""
