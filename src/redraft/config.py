"""Layered TOML configuration with typed dataclass mapping.

Priority stack (highest wins):
    1. Hardcoded defaults (RedraftConfig())
    2. config/default.toml (bundled)
    3. config/profiles/{profile}.toml (profile delta)
    4. ~/.config/redraft/config.toml (user config)
    5. CLI overrides (dot-notation)
"""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

PROFILES = ("fast", "balanced", "quality")

# ---------------------------------------------------------------------------
# Typed config tree (frozen, slotted)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeneralConfig:
    """Top-level general settings."""

    profile: str = "balanced"
    log_level: str = "warning"


@dataclass(frozen=True, slots=True)
class OllamaModelsConfig:
    """Model tags per quality profile."""

    fast: str = "phi3:3.8b"
    balanced: str = "qwen2.5:7b"
    quality: str = "llama3.1:8b"


@dataclass(frozen=True, slots=True)
class OllamaConfig:
    """Ollama server connection settings."""

    host: str = "http://localhost:11434"
    timeout_seconds: int = 120
    max_retries: int = 1
    health_check_on_start: bool = True
    models: OllamaModelsConfig = field(default_factory=OllamaModelsConfig)


@dataclass(frozen=True, slots=True)
class OptimizerConfig:
    """Rewrite-and-rescore loop settings."""

    threshold: float = 30.0
    intensity_step: int = 25
    max_intensity: int = 100
    max_escalations: int = 3


@dataclass(frozen=True, slots=True)
class FlowConfig:
    """Flow session settings."""

    paraphrase_intensity: int = 50
    history_preview: int = 10


@dataclass(frozen=True, slots=True)
class RedraftConfig:
    """Root configuration node."""

    general: GeneralConfig = field(default_factory=GeneralConfig)
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    flow: FlowConfig = field(default_factory=FlowConfig)

    @property
    def model(self) -> str:
        """Ollama model tag for the active profile."""
        return getattr(self.ollama.models, self.general.profile)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the full tree to nested dicts."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Config loading helpers
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Lists replace, dicts recurse."""
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce_value(s: str) -> bool | int | float | str:
    """Coerce a CLI string value to its typed equivalent."""
    if s.lower() == "true":
        return True
    if s.lower() == "false":
        return False
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        pass
    return s


def _apply_dot_override(raw: dict[str, Any], dot_key: str, str_value: str) -> None:
    """Apply a dot-notation CLI override into the raw config dict.

    Example: _apply_dot_override(raw, "optimizer.threshold", "25")
    sets raw["optimizer"]["threshold"] = 25
    """
    parts = dot_key.split(".")
    target = raw
    for part in parts[:-1]:
        if part not in target:
            target[part] = {}
        target = target[part]
    target[parts[-1]] = _coerce_value(str_value)


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file, returning empty dict if not found."""
    if not path.is_file():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


def _load_bundled_toml(filename: str) -> dict[str, Any]:
    """Load a TOML file from the config/ directory at the project root."""
    current = Path(__file__).resolve().parent
    for _ in range(5):
        config_path = current / "config" / filename
        if config_path.is_file():
            return _load_toml_file(config_path)
        current = current.parent
    return {}


def _build_config(raw: dict[str, Any]) -> RedraftConfig:
    """Map a merged raw dict to the typed RedraftConfig tree."""
    general_raw = dict(raw.get("general", {}))
    ollama_raw = dict(raw.get("ollama", {}))
    optimizer_raw = dict(raw.get("optimizer", {}))
    flow_raw = dict(raw.get("flow", {}))

    general = GeneralConfig(**general_raw)
    if general.profile not in PROFILES:
        raise ValueError(f"profile must be one of {PROFILES}, got {general.profile!r}")

    models = OllamaModelsConfig(**ollama_raw.pop("models", {}))
    ollama = OllamaConfig(**ollama_raw, models=models)

    optimizer = OptimizerConfig(**optimizer_raw)
    if not 1 <= optimizer.max_intensity <= 100:
        raise ValueError(
            f"optimizer.max_intensity must be in [1, 100], got {optimizer.max_intensity}"
        )
    if optimizer.max_escalations < 0:
        raise ValueError(
            f"optimizer.max_escalations must be >= 0, got {optimizer.max_escalations}"
        )
    if not 1 <= optimizer.intensity_step <= 100:
        raise ValueError(
            f"optimizer.intensity_step must be in [1, 100], got {optimizer.intensity_step}"
        )

    flow = FlowConfig(**flow_raw)
    if not 1 <= flow.paraphrase_intensity <= 100:
        raise ValueError(
            f"flow.paraphrase_intensity must be in [1, 100], got {flow.paraphrase_intensity}"
        )

    return RedraftConfig(
        general=general,
        ollama=ollama,
        optimizer=optimizer,
        flow=flow,
    )


def load_config(
    profile: str | None = None,
    user_config_path: Path | None = None,
    cli_overrides: dict[str, str] | None = None,
) -> RedraftConfig:
    """Load configuration with 5-layer priority stack.

    Args:
        profile: Quality profile name ("fast", "balanced", "quality").
            If None, uses the value from default.toml.
        user_config_path: Path to user config TOML. Defaults to
            ~/.config/redraft/config.toml.
        cli_overrides: Dot-notation key→value pairs from CLI flags.

    Returns:
        Fully resolved, typed RedraftConfig.
    """
    # Layer 2: bundled default.toml
    raw = _load_bundled_toml("default.toml")

    effective_profile = profile
    if effective_profile is None:
        effective_profile = raw.get("general", {}).get("profile", "balanced")

    # Layer 3: profile overrides
    raw = _deep_merge(raw, _load_bundled_toml(f"profiles/{effective_profile}.toml"))

    # Layer 4: user config
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "redraft" / "config.toml"
    raw = _deep_merge(raw, _load_toml_file(user_config_path))

    # An explicit profile argument beats any file
    if profile is not None:
        raw = _deep_merge(raw, {"general": {"profile": profile}})

    # Layer 5: CLI overrides
    if cli_overrides:
        for dot_key, str_value in cli_overrides.items():
            _apply_dot_override(raw, dot_key, str_value)

    return _build_config(raw)
