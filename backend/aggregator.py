"""Weighted final score over module results."""

from models import ModuleResult
from scorers.normalize import clamp_score

WEIGHTS = {
    "performance": 0.20,
    "accessibility": 0.15,
    "seo": 0.20,
    "content": 0.20,
    "ux": 0.12,
    "monetization": 0.06,
    "trust": 0.04,
    "security": 0.03,
}

# Fast analysis only runs the four modules that need no network lookups.
FAST_WEIGHTS = {
    "performance": 0.28,
    "accessibility": 0.20,
    "seo": 0.32,
    "content": 0.20,
}

LABELS = {
    "performance": "Performance",
    "accessibility": "Accessibility",
    "seo": "SEO",
    "content": "Content",
    "ux": "UX",
    "monetization": "Monetization",
    "trust": "Trust",
    "security": "Security",
}


def aggregate(modules: dict[str, ModuleResult], weights: dict[str, float] | None = None) -> int:
    """
    Weighted mean of module scores, renormalized over the modules present.

    Modules missing from `modules` drop out and the remaining weights are
    rescaled to sum to 1. Returns 0 when nothing weighted was scored.
    """
    weights = weights or WEIGHTS
    used = {name: w for name, w in weights.items() if name in modules}
    total = sum(used.values())
    if total <= 0:
        return 0
    return clamp_score(sum(modules[name]["score"] * w for name, w in used.items()) / total)


def weights_sentence(weights: dict[str, float] | None = None) -> str:
    weights = weights or WEIGHTS
    parts = ", ".join(f"{LABELS.get(name, name)}({round(w * 100)}%)" for name, w in weights.items())
    return f"Final score is weighted by modules: {parts}."
