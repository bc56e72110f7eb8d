"""Exceptions raised by the waterfall engine and scenario service.

Calculation errors are fatal for the call that raised them: there is nothing
transient about a malformed scenario, so callers should surface them rather
than retry. Advisory checks (see `validation.get_allocation_issues`) return
issue lists instead of raising.
"""


class WaterfallError(Exception):
    """Base class for all waterfall domain errors."""
    pass


class UnsupportedModelError(WaterfallError, ValueError):
    """Raised when a scenario's model has no registered calculator."""

    def __init__(self, model):
        self.model = model
        super().__init__(f"Unsupported waterfall model: {model!r}")


class InvalidTierConfigurationError(WaterfallError, ValueError):
    """Raised when a tier lacks a parameter its type requires."""

    def __init__(self, tier_id: str, message: str):
        self.tier_id = tier_id
        super().__init__(f"Tier '{tier_id}': {message}")


class InvalidSensitivityRangeError(WaterfallError, ValueError):
    """Raised for a sensitivity request outside the configured options."""
    pass


class ScenarioNotFoundError(WaterfallError, KeyError):
    """Raised when a scenario id resolves to no stored scenario."""

    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(f"Waterfall scenario not found: {scenario_id}")

    def __str__(self) -> str:
        return self.args[0]


class TemplateNotFoundError(WaterfallError, KeyError):
    """Raised when a template id resolves to no template."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")

    def __str__(self) -> str:
        return self.args[0]


class StaleScenarioError(WaterfallError):
    """Raised when a repository write would not advance the scenario version."""
    pass
