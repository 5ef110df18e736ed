"""Networked multiplayer Asteroids: world model, UDP session protocol, server simulation and client."""

__version__ = "0.1.0"