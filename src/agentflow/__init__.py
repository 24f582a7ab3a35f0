"""Agentflow - tool-calling agents and plan-driven multi-agent flows."""

__version__ = "0.1.0"
