"""Scenario storage.

The scenario service talks to storage through the small ScenarioRepository
protocol. Two implementations ship with the package:

- InMemoryScenarioRepository: process-local dict, used by tests and scripts
- JsonFileScenarioRepository: the same dict persisted to one JSON file,
  hydrated lazily on first access and rewritten after every mutation

Repositories hand out deep copies, so callers never mutate stored state
without going through `put`.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from pydantic import TypeAdapter

from ..errors import StaleScenarioError
from ..schemas import WaterfallScenario

logger = logging.getLogger(__name__)


class ScenarioRepository(Protocol):
    """Storage contract used by ScenarioService."""

    def get(self, scenario_id: str) -> Optional[WaterfallScenario]:
        ...

    def list(self) -> List[WaterfallScenario]:
        ...

    def put(self, scenario: WaterfallScenario) -> None:
        ...

    def delete(self, scenario_id: str) -> bool:
        ...


class InMemoryScenarioRepository:
    """Dict-backed repository.

    `put` refuses to overwrite a stored scenario with a version that is not
    strictly greater than the stored one.
    """

    def __init__(self, scenarios: Optional[List[WaterfallScenario]] = None):
        self._lock = threading.Lock()
        self._scenarios: Dict[str, WaterfallScenario] = {}
        for scenario in scenarios or []:
            self._scenarios[scenario.id] = scenario.model_copy(deep=True)

    def get(self, scenario_id: str) -> Optional[WaterfallScenario]:
        with self._lock:
            scenario = self._scenarios.get(scenario_id)
            return scenario.model_copy(deep=True) if scenario is not None else None

    def list(self) -> List[WaterfallScenario]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._scenarios.values()]

    def put(self, scenario: WaterfallScenario) -> None:
        with self._lock:
            existing = self._scenarios.get(scenario.id)
            if existing is not None and scenario.version <= existing.version:
                raise StaleScenarioError(
                    f"Scenario {scenario.id}: version {scenario.version} "
                    f"does not advance stored version {existing.version}"
                )
            self._scenarios[scenario.id] = scenario.model_copy(deep=True)
            self._changed()

    def delete(self, scenario_id: str) -> bool:
        with self._lock:
            removed = self._scenarios.pop(scenario_id, None) is not None
            if removed:
                self._changed()
            return removed

    def _changed(self) -> None:
        """Hook run (under the lock) after every successful mutation."""
        pass


_SCENARIO_LIST = TypeAdapter(List[WaterfallScenario])


class JsonFileScenarioRepository(InMemoryScenarioRepository):
    """Repository persisted as a JSON array of scenarios.

    Example:
        repository = JsonFileScenarioRepository("scenarios.json")
        service = ScenarioService(repository)
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._loaded = False

    def get(self, scenario_id: str) -> Optional[WaterfallScenario]:
        self._ensure_loaded()
        return super().get(scenario_id)

    def list(self) -> List[WaterfallScenario]:
        self._ensure_loaded()
        return super().list()

    def put(self, scenario: WaterfallScenario) -> None:
        self._ensure_loaded()
        super().put(scenario)

    def delete(self, scenario_id: str) -> bool:
        self._ensure_loaded()
        return super().delete(scenario_id)

    def _ensure_loaded(self) -> None:
        with self._lock:
            if self._loaded:
                return
            if self.path.exists():
                scenarios = _SCENARIO_LIST.validate_json(self.path.read_bytes())
                self._scenarios = {s.id: s for s in scenarios}
                logger.debug("Loaded %d scenarios from %s", len(scenarios), self.path)
            self._loaded = True

    def _changed(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_bytes(
            _SCENARIO_LIST.dump_json(list(self._scenarios.values()), indent=2)
        )
        tmp_path.replace(self.path)
