"""
Random `adjective-noun` names for saved layouts.
"""

from __future__ import annotations

import random

ADJECTIVES: tuple[str, ...] = (
    "agile", "blissful", "brave", "bright", "calm", "clever", "daring", "deep", "eager", "fast",
    "fierce", "flying", "gentle", "golden", "happy", "humble", "jolly", "keen", "lively", "mighty",
    "nimble", "noble", "peaceful", "quick", "radiant", "rapid", "resilient", "robust", "silent",
    "swift", "tranquil", "vivid", "wise", "zen",
)

NOUNS: tuple[str, ...] = (
    "anchor", "beacon", "comet", "core", "crater", "dragon", "echo", "falcon", "galaxy", "gateway",
    "gemini", "harbor", "horizon", "javelin", "journey", "kraken", "lantern", "matrix", "nebula",
    "nexus", "oasis", "orbit", "phoenix", "pillar", "pioneer", "portal", "quasar", "rocket",
    "sentinel", "shadow", "spirit", "star", "summit", "titan", "vortex", "voyager", "whisper", "zephyr",
)


def generate_name(rng: random.Random | None = None) -> str:
    chooser = rng or random
    return f"{chooser.choice(ADJECTIVES)}-{chooser.choice(NOUNS)}"
