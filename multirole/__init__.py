"""Building blocks for a duelling card game server: packets, core messages, banlists, card data and replays."""

__version__ = "0.1.0"