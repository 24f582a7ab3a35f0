"""Tests for configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agentflow.config import (
    AppConfig,
    LLMSettings,
    default_flow_config,
    load_config,
    load_config_file,
    load_flow_config,
    load_json_config,
    load_yaml_config,
    parse_flow_config,
)
from agentflow.errors import ConfigurationError


class TestLLMSettings:
    def test_defaults(self) -> None:
        cfg = load_config(environ={})
        default = cfg.get_llm_settings()
        assert default == LLMSettings()
        assert default.model == "gpt-4o"
        assert default.max_tokens == 4096
        assert default.temperature == 0.0
        assert not cfg.debug

    def test_unknown_name_falls_back_to_default(self) -> None:
        cfg = AppConfig()
        assert cfg.get_llm_settings("nope") is cfg.llm["default"]

    def test_file_values(self) -> None:
        raw = {"llm": {"default": {"model": "gpt-4o-mini", "maxTokens": "1024", "apiKey": "sk-file"}}}
        default = load_config(raw=raw, environ={}).get_llm_settings()
        assert default.model == "gpt-4o-mini"
        assert default.max_tokens == 1024
        assert default.api_key == "sk-file"

    def test_env_overrides_file(self) -> None:
        raw = {"llm": {"default": {"model": "from-file", "temperature": 0.2}}}
        env = {"LLM_MODEL": "from-env", "OPENAI_API_KEY": "sk-env", "LLM_TEMPERATURE": "0.7"}
        default = load_config(raw=raw, environ=env).get_llm_settings()
        assert default.model == "from-env"
        assert default.api_key == "sk-env"
        assert default.temperature == 0.7

    def test_named_entries_merge_over_default(self) -> None:
        raw = {"llm": {
            "default": {"model": "big", "api_key": "sk"},
            "vision": {"model": "eyes", "max_tokens": 256},
        }}
        cfg = load_config(raw=raw, environ={})
        vision = cfg.get_llm_settings("vision")
        assert vision.model == "eyes"
        assert vision.max_tokens == 256
        assert vision.api_key == "sk"

    def test_azure(self) -> None:
        raw = {"llm": {"default": {"apiType": "azure", "apiVersion": "2024-06-01"}}}
        default = load_config(raw=raw, environ={}).get_llm_settings()
        assert default.api_type == "azure"
        assert default.api_version == "2024-06-01"

    @pytest.mark.parametrize("entry", [
        {"max_tokens": "lots"},
        {"temperature": "warm"},
        {"api_type": "bedrock"},
    ])
    def test_invalid_values(self, entry: dict) -> None:
        with pytest.raises(ConfigurationError):
            load_config(raw={"llm": {"default": entry}}, environ={})

    def test_llm_must_be_mapping(self) -> None:
        with pytest.raises(ConfigurationError):
            load_config(raw={"llm": ["gpt-4o"]}, environ={})
        with pytest.raises(ConfigurationError):
            load_config(raw={"llm": {"vision": "gpt-4o"}}, environ={})

    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("no", False)])
    def test_debug_env(self, value: str, expected: bool) -> None:
        assert load_config(environ={"AGENTFLOW_DEBUG": value}).debug is expected


class TestConfigFiles:
    def test_json_missing_returns_empty(self, tmp_path: Path) -> None:
        assert load_json_config(tmp_path / "none.json") == {}
        assert load_yaml_config(tmp_path / "none.yaml") == {}

    def test_json_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        with pytest.raises(ConfigurationError):
            load_json_config(path)

    def test_json_not_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_json_config(path)

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("llm:\n  default:\n    model: gpt-4o-mini\n")
        cfg = load_config(path, environ={})
        assert cfg.get_llm_settings().model == "gpt-4o-mini"

    def test_yaml_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_yaml_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("llm: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_missing_file_is_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.json", environ={})


class TestFlowConfig:
    def test_default(self) -> None:
        cfg = default_flow_config()
        assert cfg.type == "planning"
        assert cfg.primary_agent == "planner"
        assert cfg.executors == ["executor"]
        assert cfg.agents["planner"].type == "planning"
        assert cfg.agents["planner"].max_steps == 15
        assert cfg.agents["executor"].tools == ["chat", "terminate"]

    def test_parse_camel_case(self) -> None:
        cfg = parse_flow_config({
            "type": "planning",
            "primaryAgent": "lead",
            "executors": ["worker"],
            "planId": "plan_1",
            "agents": {
                "lead": {"type": "planning", "maxSteps": 5, "systemPrompt": "Lead well"},
                "worker": {"type": "toolcall", "tools": ["chat"], "nextStepPrompt": "Go on", "llm": "cheap"},
            },
        })
        assert cfg.primary_agent == "lead"
        assert cfg.plan_id == "plan_1"
        assert cfg.agents["lead"].max_steps == 5
        assert cfg.agents["lead"].system_prompt == "Lead well"
        assert cfg.agents["worker"].next_step_prompt == "Go on"
        assert cfg.agents["worker"].llm == "cheap"

    def test_unknown_keys_ignored(self) -> None:
        cfg = parse_flow_config({"agents": {"a": {"type": "toolcall", "colour": "red"}}, "llm": {}})
        assert cfg.agents["a"].type == "toolcall"
        assert cfg.primary_agent is None

    @pytest.mark.parametrize("raw,match", [
        ({"agents": {}}, "agents"),
        ({"agents": {"a": {"type": "browser"}}}, "unknown type"),
        ({"agents": {"a": {"maxSteps": 0}}}, "maxSteps"),
        ({"agents": {"a": {"maxSteps": "ten"}}}, "maxSteps"),
        ({"agents": {"a": {"tools": "chat"}}}, "tools"),
        ({"agents": {"a": {}}, "primaryAgent": "b"}, "primaryAgent"),
        ({"agents": {"a": {}}, "executors": "a"}, "executors"),
        ({"agents": {"a": "toolcall"}}, "agents.a"),
    ])
    def test_invalid(self, raw: dict, match: str) -> None:
        with pytest.raises(ConfigurationError, match=match):
            parse_flow_config(raw)

    def test_load_without_path(self) -> None:
        assert load_flow_config() == default_flow_config()

    def test_load_llm_only_file_uses_default(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"llm": {"default": {"model": "x"}}}))
        assert load_flow_config(path) == default_flow_config()

    def test_load_flow_file(self, tmp_path: Path) -> None:
        path = tmp_path / "flow.yaml"
        path.write_text("agents:\n  solo:\n    type: toolcall\n    maxSteps: 3\n")
        cfg = load_flow_config(path)
        assert list(cfg.agents) == ["solo"]
        assert cfg.agents["solo"].max_steps == 3
