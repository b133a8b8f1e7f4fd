"""Prompt configuration loader.

Loads YAML prompt configurations from config/prompts/ and renders their
templates. Templates use $placeholders so JSON examples inside prompts
need no escaping.
"""
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any, Dict, Optional

import yaml

_SEARCH_DIRS = ("extraction", "chronology", "")


@dataclass
class RenderedPrompt:
    """A prompt ready for LLMPort.generate."""
    prompt: str
    system: Optional[str] = None


class PromptLoader:
    """Load prompt configurations from YAML files."""

    def __init__(self, prompts_dir: Path = None):
        """Initialize loader.

        Args:
            prompts_dir: Path to prompts directory.
                         Defaults to app/config/prompts/
        """
        if prompts_dir is None:
            prompts_dir = Path(__file__).parent.parent.parent / "config" / "prompts"
        self._prompts_dir = prompts_dir
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load(self, name: str) -> Dict[str, Any]:
        """Load a prompt configuration by name.

        Args:
            name: Config name (e.g., "classification", "medical_records")

        Returns:
            Dictionary with prompt configuration

        Raises:
            FileNotFoundError: If config file not found
        """
        if name in self._cache:
            return self._cache[name]

        for subdir in _SEARCH_DIRS:
            path = self._prompts_dir / subdir / f"{name}.yaml"
            if path.exists():
                break
        else:
            raise FileNotFoundError(f"Prompt config not found: {name}")

        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        self._cache[name] = config
        return config

    def exists(self, name: str) -> bool:
        return any((self._prompts_dir / subdir / f"{name}.yaml").exists() for subdir in _SEARCH_DIRS)

    def render(self, name: str, **values: Any) -> RenderedPrompt:
        """Render a prompt's user template with the given values.

        Args:
            name: Config name
            **values: Substitutions for $placeholders in user_prompt

        Returns:
            RenderedPrompt with the filled user prompt and optional system prompt
        """
        config = self.load(name)
        template = Template(config.get("user_prompt", ""))
        return RenderedPrompt(
            prompt=template.safe_substitute({k: str(v) for k, v in values.items()}),
            system=config.get("system_prompt"),
        )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self._cache.clear()
