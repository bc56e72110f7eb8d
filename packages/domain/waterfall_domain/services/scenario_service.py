"""Scenario service - lifecycle management and calculation entry points.

The service owns every rule about scenario identity and versioning:
- ids are assigned on create/duplicate and never change
- version starts at 1 and increases by exactly one per mutation
- created_at is set once; updated_at is refreshed on every mutation

Calculations never mutate stored scenarios. Results are recomputed on every
call.
"""

import logging
import re
import threading
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..engine import calculate_waterfall, calculate_moic, run_sensitivity
from ..errors import ScenarioNotFoundError, TemplateNotFoundError
from ..schemas import (
    ComparisonMetric,
    InvestorClass,
    ScenarioComparison,
    SensitivityAnalysis,
    SensitivityCFG,
    WaterfallResults,
    WaterfallScenario,
    WaterfallTemplate,
    WaterfallTier,
)
from ..schemas.investors import utc_now
from .repository import ScenarioRepository
from .templates import system_templates

logger = logging.getLogger(__name__)

# Fields the service manages itself; callers cannot set them on create/update.
MANAGED_FIELDS = frozenset({"id", "version", "created_at", "updated_at"})

ScenarioData = Union[Mapping[str, Any], WaterfallScenario]


def _default_id_factory() -> str:
    return f"scenario-{uuid.uuid4().hex[:12]}"


def _as_dict(data: ScenarioData) -> Dict[str, Any]:
    if isinstance(data, WaterfallScenario):
        return data.model_dump()
    return dict(data)


class ScenarioService:
    """Create, version, query and calculate waterfall scenarios.

    Args:
        repository: Scenario storage
        clock: Returns the current time (defaults to UTC now)
        id_factory: Returns a new unique scenario id
        sensitivity_cfg: Range/step constants for sensitivity sweeps

    Example:
        service = ScenarioService(InMemoryScenarioRepository())
        scenario = service.create_scenario({
            "name": "Base Case",
            "exit_value": Decimal("150000000"),
            "total_invested": Decimal("100000000"),
            "tiers": [...],
        })
        results = service.perform_waterfall_calculation(scenario_id=scenario.id)
    """

    def __init__(
        self,
        repository: ScenarioRepository,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        sensitivity_cfg: Optional[SensitivityCFG] = None,
    ):
        self.repository = repository
        self.clock = clock if clock is not None else utc_now
        self.id_factory = id_factory if id_factory is not None else _default_id_factory
        self.sensitivity_cfg = sensitivity_cfg if sensitivity_cfg is not None else SensitivityCFG()
        self._lock = threading.RLock()

    # =========================================================================
    # Queries
    # =========================================================================

    def fetch_scenarios(
        self,
        fund_id: Optional[str] = None,
        is_favorite: Optional[bool] = None,
        tags: Optional[Iterable[str]] = None,
        search_query: Optional[str] = None,
    ) -> List[WaterfallScenario]:
        """List scenarios matching every supplied filter.

        Args:
            fund_id: Exact fund match
            is_favorite: Favorite flag match
            tags: Scenario must carry at least one of these tags
            search_query: Case-insensitive substring of name or description

        Returns:
            Matching scenarios ordered by created_at, then id
        """
        scenarios = self.repository.list()

        if fund_id:
            scenarios = [s for s in scenarios if s.fund_id == fund_id]
        if is_favorite is not None:
            scenarios = [s for s in scenarios if s.is_favorite == is_favorite]
        if tags:
            wanted = set(tags)
            scenarios = [s for s in scenarios if wanted.intersection(s.tags)]
        if search_query:
            query = search_query.lower()
            scenarios = [
                s for s in scenarios
                if query in s.name.lower() or query in (s.description or "").lower()
            ]

        return sorted(scenarios, key=lambda s: (s.created_at, s.id))

    def fetch_scenario(self, scenario_id: str) -> WaterfallScenario:
        scenario = self.repository.get(scenario_id)
        if scenario is None:
            raise ScenarioNotFoundError(scenario_id)
        return scenario

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_scenario(self, data: ScenarioData) -> WaterfallScenario:
        """Store a new scenario with a fresh id, version 1 and timestamps.

        Any id, version or timestamps present in `data` are ignored.
        """
        fields = {k: v for k, v in _as_dict(data).items() if k not in MANAGED_FIELDS}
        with self._lock:
            now = self.clock()
            scenario = WaterfallScenario(
                **fields,
                id=self.id_factory(),
                version=1,
                created_at=now,
                updated_at=now,
            )
            self.repository.put(scenario)
        logger.info("Created scenario %s (%s)", scenario.id, scenario.name)
        return scenario

    def update_scenario(self, scenario_id: str, changes: Mapping[str, Any]) -> WaterfallScenario:
        """Merge `changes` into a stored scenario and bump its version.

        Raises:
            ScenarioNotFoundError: If the id is unknown
            ValidationError: If the merged scenario is invalid
        """
        with self._lock:
            current = self.fetch_scenario(scenario_id)
            merged = current.model_dump()
            merged.update({k: v for k, v in changes.items() if k not in MANAGED_FIELDS})
            merged["version"] = current.version + 1
            merged["updated_at"] = self.clock()
            updated = WaterfallScenario.model_validate(merged)
            self.repository.put(updated)
        logger.info("Updated scenario %s to version %d", scenario_id, updated.version)
        return updated

    def duplicate_scenario(self, scenario_id: str, new_name: Optional[str] = None) -> WaterfallScenario:
        """Copy a scenario under a new id, reset to version 1 and not favorite."""
        with self._lock:
            original = self.fetch_scenario(scenario_id)
            now = self.clock()
            duplicate = original.model_copy(deep=True, update={
                "id": self.id_factory(),
                "name": new_name or f"{original.name} (Copy)",
                "version": 1,
                "created_at": now,
                "updated_at": now,
                "is_favorite": False,
            })
            self.repository.put(duplicate)
        logger.info("Duplicated scenario %s as %s", scenario_id, duplicate.id)
        return duplicate

    def delete_scenario(self, scenario_id: str) -> None:
        with self._lock:
            if not self.repository.delete(scenario_id):
                raise ScenarioNotFoundError(scenario_id)
        logger.info("Deleted scenario %s", scenario_id)

    def toggle_favorite(self, scenario_id: str) -> WaterfallScenario:
        """Flip the favorite flag. Counts as a mutation (version + 1)."""
        with self._lock:
            current = self.fetch_scenario(scenario_id)
            return self.update_scenario(scenario_id, {"is_favorite": not current.is_favorite})

    # =========================================================================
    # Templates
    # =========================================================================

    def fetch_templates(self) -> List[WaterfallTemplate]:
        return system_templates()

    def create_scenario_from_template(
        self,
        template_id: str,
        name: str,
        exit_value: Decimal,
        total_invested: Decimal,
        management_fees: Decimal,
        created_by: str,
        fund_id: Optional[str] = None,
        fund_name: Optional[str] = None,
        investor_classes: Optional[List[InvestorClass]] = None,
    ) -> WaterfallScenario:
        """Seed a new scenario with a template's model and tiers.

        Raises:
            TemplateNotFoundError: If the template id is unknown
        """
        template = next((t for t in self.fetch_templates() if t.id == template_id), None)
        if template is None:
            raise TemplateNotFoundError(template_id)

        with self._lock:
            scenario_id = self.id_factory()
            now = self.clock()
            tiers = [
                WaterfallTier(id=f"{scenario_id}-tier-{index + 1}", **definition.model_dump())
                for index, definition in enumerate(template.tiers)
            ]
            scenario = WaterfallScenario(
                id=scenario_id,
                name=name,
                description=f"Created from template: {template.name}",
                fund_id=fund_id,
                fund_name=fund_name,
                model=template.model,
                investor_classes=list(investor_classes or []),
                tiers=tiers,
                exit_value=exit_value,
                total_invested=total_invested,
                management_fees=management_fees,
                version=1,
                created_at=now,
                updated_at=now,
                created_by=created_by,
                tags=[re.sub(r"\s+", "-", template.name.lower())],
            )
            self.repository.put(scenario)
        logger.info("Created scenario %s from template %s", scenario.id, template_id)
        return scenario

    # =========================================================================
    # Calculations
    # =========================================================================

    def perform_waterfall_calculation(
        self,
        scenario: Optional[WaterfallScenario] = None,
        scenario_id: Optional[str] = None,
        model=None,
    ) -> WaterfallResults:
        """Calculate a scenario passed directly or loaded by id.

        Args:
            scenario: Scenario to calculate (takes precedence)
            scenario_id: Id of a stored scenario
            model: Optional override of the scenario's model

        Raises:
            ValueError: If neither scenario nor scenario_id is given
            ScenarioNotFoundError: If scenario_id is unknown
        """
        if scenario is None:
            if scenario_id is None:
                raise ValueError("Either scenario or scenario_id must be provided")
            scenario = self.fetch_scenario(scenario_id)
        return calculate_waterfall(scenario, model)

    def perform_sensitivity_analysis(
        self,
        scenario_id: str,
        min_multiplier: Optional[Decimal] = None,
        max_multiplier: Optional[Decimal] = None,
        steps: Optional[int] = None,
    ) -> SensitivityAnalysis:
        scenario = self.fetch_scenario(scenario_id)
        return run_sensitivity(
            scenario,
            min_multiplier=min_multiplier,
            max_multiplier=max_multiplier,
            steps=steps,
            cfg=self.sensitivity_cfg,
        )

    def compare_scenarios(self, scenario_ids: Iterable[str]) -> ScenarioComparison:
        """Headline metrics for several stored scenarios side by side."""
        scenarios = [self.fetch_scenario(scenario_id) for scenario_id in scenario_ids]
        metrics = []
        for scenario in scenarios:
            results = calculate_waterfall(scenario)
            metrics.append(ComparisonMetric(
                scenario_id=scenario.id,
                scenario_name=scenario.name,
                model=scenario.model,
                gp_carry=results.gp_carry,
                lp_return=results.lp_total_return,
                total_multiple=calculate_moic(scenario.total_invested, scenario.exit_value),
            ))
        return ScenarioComparison(scenarios=scenarios, comparison_metrics=metrics)
