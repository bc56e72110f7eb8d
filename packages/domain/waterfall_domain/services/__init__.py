"""Scenario lifecycle services and storage."""

from .repository import (
    InMemoryScenarioRepository,
    JsonFileScenarioRepository,
    ScenarioRepository,
)
from .scenario_service import ScenarioService
from .templates import system_templates

__all__ = [
    "ScenarioRepository",
    "InMemoryScenarioRepository",
    "JsonFileScenarioRepository",
    "ScenarioService",
    "system_templates",
]
