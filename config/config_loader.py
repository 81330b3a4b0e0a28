"""Load settings.yaml into typed dataclasses. Resolves API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from warroom.models import Role

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None
    api_key: str = field(default="", repr=False)


@dataclass
class RoleConfig:
    role: Role
    model: str                # key into AppConfig.models
    system: str
    prompt: str               # placeholders: {idea}, {location}, {context}
    search: bool = False
    thinking_budget: int | None = None


@dataclass
class ClarificationConfig:
    model: str
    prompt: str               # placeholders: {idea}, {location}
    system: str = ""


@dataclass
class DefaultsConfig:
    output_dir: Path
    inbox_dir: Path = Path("./inbox")
    archive_dir: Path = Path("./inbox/archive")


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    roles: dict[Role, RoleConfig]
    clarification: ClarificationConfig
    available_providers: set[str] = field(default_factory=set)

    def required_models(self) -> set[str]:
        """Model keys referenced by at least one role or the clarifier."""
        return {rc.model for rc in self.roles.values()} | {self.clarification.model}


def _parse_role(role: Role, raw: dict, models: dict[str, ModelConfig]) -> RoleConfig:
    model_key = str(raw["model"])
    if model_key not in models:
        raise ValueError(f"Role '{role.value}' refers to unknown model '{model_key}'")
    thinking = raw.get("thinking_budget")
    return RoleConfig(
        role=role,
        model=model_key,
        system=str(raw.get("system", "")),
        prompt=str(raw["prompt"]),
        search=bool(raw.get("search", False)),
        thinking_budget=int(thinking) if thinking is not None else None,
    )


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError if a role
    is missing or points at an undefined model.
    Logs missing API keys but does not raise; callers check
    available_providers against required_models().
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        output_dir=Path(defaults_raw["output_dir"]),
        inbox_dir=Path(defaults_raw.get("inbox_dir", "./inbox")),
        archive_dir=Path(defaults_raw.get("archive_dir", "./inbox/archive")),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for model_name, model_raw in raw["models"].items():
        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        models[model_name] = ModelConfig(
            name=model_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
            api_key=api_key,
        )
        if api_key:
            available_providers.add(model_name)
            logger.info("Provider available: %s", model_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s (set %s in .env)",
                model_name,
                model_raw["api_key_env"],
            )

    roles_raw = raw["roles"]
    roles: dict[Role, RoleConfig] = {}
    for role in Role:
        if role.value not in roles_raw:
            raise ValueError(f"Missing role configuration: {role.value}")
        roles[role] = _parse_role(role, roles_raw[role.value], models)

    clar_raw = raw["clarification"]
    if clar_raw["model"] not in models:
        raise ValueError(f"Clarification refers to unknown model '{clar_raw['model']}'")
    clarification = ClarificationConfig(
        model=str(clar_raw["model"]),
        prompt=str(clar_raw["prompt"]),
        system=str(clar_raw.get("system", "")),
    )

    return AppConfig(
        defaults=defaults,
        models=models,
        roles=roles,
        clarification=clarification,
        available_providers=available_providers,
    )
