"""Configuration loading and management.

One JSON or YAML file can hold both the model settings (under ``llm``) and
the flow description (``type``, ``agents``, ``primaryAgent``, ``executors``).
Model settings are resolved as defaults, then the file, then environment
variables; named ``llm`` entries are merged over ``default``.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from agentflow.errors import ConfigurationError

# Load .env files
load_dotenv()

DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.0
DEFAULT_LLM_TIMEOUT = 60.0

AGENT_TYPES = ("planning", "toolcall")


# ---------------------------------------------------------------------------
# Model settings
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LLMSettings:
    """Connection and sampling settings for one model endpoint."""

    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    api_type: str = "openai"
    api_version: str | None = None
    timeout: float = DEFAULT_LLM_TIMEOUT


@dataclass(slots=True)
class AppConfig:
    """Named LLM settings; ``default`` is always present."""

    llm: dict[str, LLMSettings] = field(default_factory=lambda: {"default": LLMSettings()})
    debug: bool = False

    def get_llm_settings(self, name: str = "default") -> LLMSettings:
        return self.llm.get(name) or self.llm["default"]


_LLM_FIELD_MAP = {
    "model": "model",
    "base_url": "base_url",
    "api_key": "api_key",
    "max_tokens": "max_tokens",
    "temperature": "temperature",
    "api_type": "api_type",
    "api_version": "api_version",
    "timeout": "timeout",
    # Aliases from JSON config
    "baseUrl": "base_url",
    "apiKey": "api_key",
    "maxTokens": "max_tokens",
    "apiType": "api_type",
    "apiVersion": "api_version",
}

_LLM_ENV_VARS = {
    "LLM_MODEL": "model",
    "LLM_BASE_URL": "base_url",
    "OPENAI_API_KEY": "api_key",
    "LLM_MAX_TOKENS": "max_tokens",
    "LLM_TEMPERATURE": "temperature",
    "LLM_API_TYPE": "api_type",
    "AZURE_API_VERSION": "api_version",
}

_LLM_CASTS: dict[str, type] = {"max_tokens": int, "temperature": float, "timeout": float}


def _llm_changes(data: Mapping[str, Any], *, source: str) -> dict[str, Any]:
    """Known LLM fields from ``data``, cast and validated."""
    changes: dict[str, Any] = {}
    for key, attr in _LLM_FIELD_MAP.items():
        if key in data and data[key] is not None:
            changes[attr] = data[key]
    for attr, cast in _LLM_CASTS.items():
        if attr in changes:
            try:
                changes[attr] = cast(changes[attr])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid {attr} in {source}: {changes[attr]!r}") from e
    if "api_type" in changes and changes["api_type"] not in ("openai", "azure"):
        raise ConfigurationError(f"Invalid api_type in {source}: {changes['api_type']!r}")
    return changes


def _env_changes(environ: Mapping[str, str]) -> dict[str, Any]:
    data = {attr: environ[var] for var, attr in _LLM_ENV_VARS.items() if environ.get(var)}
    return _llm_changes(data, source="environment")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def load_json_config(path: Path) -> dict[str, Any]:
    """Load a JSON config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain an object")
    return data


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a config file by extension; a missing file is an error."""
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Config file not found: {p}")
    if p.suffix.lower() in (".yaml", ".yml"):
        return load_yaml_config(p)
    return load_json_config(p)


def load_config(
    config_path: str | Path | None = None,
    *,
    raw: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Build the app config from defaults, a file (or ``raw`` dict), and the environment."""
    data: Mapping[str, Any] = raw if raw is not None else (load_config_file(config_path) if config_path else {})
    environ = os.environ if environ is None else environ

    llm_raw = data.get("llm") or {}
    if not isinstance(llm_raw, Mapping):
        raise ConfigurationError("`llm` must be a mapping of named settings")

    default = LLMSettings()
    if "default" in llm_raw:
        default = replace(default, **_llm_changes(_require_mapping(llm_raw["default"], "llm.default"), source="llm.default"))
    default = replace(default, **_env_changes(environ))

    config = AppConfig(llm={"default": default})
    for name, entry in llm_raw.items():
        if name == "default":
            continue
        config.llm[name] = replace(default, **_llm_changes(_require_mapping(entry, f"llm.{name}"), source=f"llm.{name}"))

    if debug := environ.get("AGENTFLOW_DEBUG"):
        config.debug = debug.lower() in ("1", "true", "yes")
    return config


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"`{where}` must be a mapping")
    return value


# ---------------------------------------------------------------------------
# Flow description
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class AgentSpec:
    """One agent in a flow description."""

    type: str = "toolcall"
    description: str | None = None
    system_prompt: str | None = None
    next_step_prompt: str | None = None
    max_steps: int | None = None
    tools: list[str] | None = None
    llm: str | None = None


@dataclass(slots=True)
class FlowConfig:
    """A flow description: its type, its agents, and who plans and executes."""

    type: str = "planning"
    agents: dict[str, AgentSpec] = field(default_factory=dict)
    primary_agent: str | None = None
    executors: list[str] | None = None
    plan_id: str | None = None


_FLOW_ALIASES = {
    "systemPrompt": "system_prompt",
    "nextStepPrompt": "next_step_prompt",
    "maxSteps": "max_steps",
    "primaryAgent": "primary_agent",
    "planId": "plan_id",
}


def default_flow_config() -> FlowConfig:
    """A planner that drafts the plan and an executor that carries it out."""
    return FlowConfig(
        type="planning",
        agents={
            "planner": AgentSpec(
                type="planning",
                description="Creates and manages plans",
                max_steps=15,
                tools=["planning", "terminate"],
            ),
            "executor": AgentSpec(
                type="toolcall",
                description="Executes plan steps",
                max_steps=10,
                tools=["chat", "terminate"],
            ),
        },
        primary_agent="planner",
        executors=["executor"],
    )


def parse_flow_config(raw: Mapping[str, Any]) -> FlowConfig:
    """Validate a flow description dict (camelCase or snake_case keys)."""
    data = _normalize(raw)
    agents_raw = data.get("agents")
    if not isinstance(agents_raw, Mapping) or not agents_raw:
        raise ConfigurationError("Flow config needs a non-empty `agents` mapping")

    agents: dict[str, AgentSpec] = {}
    for key, entry in agents_raw.items():
        spec = AgentSpec(**_pick(_normalize(_require_mapping(entry, f"agents.{key}")), AgentSpec))
        if spec.type not in AGENT_TYPES:
            raise ConfigurationError(f"Agent '{key}' has unknown type: {spec.type}")
        if spec.max_steps is not None and (not isinstance(spec.max_steps, int) or spec.max_steps < 1):
            raise ConfigurationError(f"Agent '{key}' maxSteps must be a positive integer")
        if spec.tools is not None and not (
            isinstance(spec.tools, list) and all(isinstance(t, str) for t in spec.tools)
        ):
            raise ConfigurationError(f"Agent '{key}' tools must be a list of names")
        agents[str(key)] = spec

    flow = FlowConfig(**(_pick(data, FlowConfig) | {"agents": agents}))
    if flow.primary_agent is not None and flow.primary_agent not in agents:
        raise ConfigurationError(f"primaryAgent '{flow.primary_agent}' is not a configured agent")
    if flow.executors is not None and not isinstance(flow.executors, list):
        raise ConfigurationError("`executors` must be a list of agent keys")
    return flow


def load_flow_config(path: str | Path | None = None) -> FlowConfig:
    """Flow description from ``path``, or the default planner/executor flow."""
    if path is None:
        return default_flow_config()
    raw = load_config_file(path)
    if "agents" not in raw:
        return default_flow_config()
    return parse_flow_config(raw)


def _normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {_FLOW_ALIASES.get(k, k): v for k, v in raw.items()}


def _pick(raw: Mapping[str, Any], model_type: type[Any]) -> dict[str, Any]:
    allowed = set(model_type.__dataclass_fields__.keys())
    return {k: v for k, v in raw.items() if k in allowed}
