import logging
from pathlib import Path
from typing import Optional

import yaml

from ..core.text import normalize
from ..settings import settings

logger = logging.getLogger(__name__)

DEFAULT_EMOJI = "🛒"
FALLBACK_MAPPINGS = {DEFAULT_EMOJI: ["default"]}


class EmojiMatcher:
    """Suggest an emoji for a grocery name from a YAML emoji -> keywords map."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or settings.emoji_mappings_path)
        self._mappings: Optional[dict[str, list[str]]] = None

    @property
    def mappings(self) -> dict[str, list[str]]:
        if self._mappings is None:
            self._mappings = self._load()
        return self._mappings

    def reload(self) -> dict[str, list[str]]:
        self._mappings = self._load()
        return self._mappings

    def _load(self) -> dict[str, list[str]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load emoji mappings from %s: %s", self.path, e)
            return dict(FALLBACK_MAPPINGS)

        if not isinstance(data, dict):
            logger.error("Emoji mappings in %s are not a mapping", self.path)
            return dict(FALLBACK_MAPPINGS)

        return {
            str(emoji): [normalize(k) for k in (keywords or []) if normalize(k)]
            for emoji, keywords in data.items()
        }

    def find_emoji(self, grocery_name: Optional[str]) -> Optional[str]:
        name = normalize(grocery_name)
        if not name:
            return None

        for emoji, keywords in self.mappings.items():
            if name in keywords:
                return emoji

        # longest keyword wins: "pineapple chunks" is a pineapple, not an apple
        best, best_length = None, 0
        for emoji, keywords in self.mappings.items():
            for keyword in keywords:
                if keyword in name and len(keyword) > best_length:
                    best, best_length = emoji, len(keyword)
        if best is not None:
            return best

        for word in (w for w in name.split() if len(w) > 2):
            for emoji, keywords in self.mappings.items():
                if word in keywords:
                    return emoji

        return DEFAULT_EMOJI

    def available_emojis(self) -> list[str]:
        return list(self.mappings)

    def keywords_for_emoji(self, emoji: str) -> list[str]:
        return self.mappings.get(emoji, [])


_matcher: Optional[EmojiMatcher] = None


def get_emoji_matcher() -> EmojiMatcher:
    global _matcher
    if _matcher is None:
        _matcher = EmojiMatcher()
    return _matcher
