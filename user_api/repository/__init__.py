"""Repository layer: DB access helpers (SQLite).

Keep functions thin and focused, so services avoid SQL strings.
Every function takes the connection explicitly.
"""
from __future__ import annotations
