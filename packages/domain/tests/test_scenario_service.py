"""Tests for ScenarioService lifecycle, templates, calculations and storage."""

import itertools
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from waterfall_domain.errors import (
    ScenarioNotFoundError,
    StaleScenarioError,
    TemplateNotFoundError,
    UnsupportedModelError,
)
from waterfall_domain.services import (
    InMemoryScenarioRepository,
    JsonFileScenarioRepository,
    ScenarioService,
    system_templates,
)

from scenario_builders import build_investor_classes, build_scenario


class TickingClock:
    """Returns a new time one minute later on every call."""

    def __init__(self, start=datetime(2024, 6, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


def build_service(repository=None) -> ScenarioService:
    counter = itertools.count(1)
    return ScenarioService(
        repository if repository is not None else InMemoryScenarioRepository(),
        clock=TickingClock(),
        id_factory=lambda: f"scenario-{next(counter)}",
    )


def scenario_data(**overrides):
    data = build_scenario(**overrides).model_dump()
    return data


# =============================================================================
# Create / Fetch
# =============================================================================

class TestCreateAndFetch:

    def test_create_assigns_identity(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        assert created.id == "scenario-1"
        assert created.version == 1
        assert created.created_at == created.updated_at
        assert service.fetch_scenario("scenario-1") == created

    def test_create_ignores_supplied_identity(self):
        service = build_service()
        data = scenario_data()
        data.update(id="my-id", version=7)

        created = service.create_scenario(data)

        assert created.id == "scenario-1"
        assert created.version == 1

    def test_create_from_model_instance(self):
        created = build_service().create_scenario(build_scenario())

        assert created.name == "Base Case"

    def test_create_rejects_invalid_data(self):
        with pytest.raises(ValidationError):
            build_service().create_scenario({"name": "No exit value"})

    def test_fetch_missing(self):
        with pytest.raises(ScenarioNotFoundError) as exc_info:
            build_service().fetch_scenario("nope")

        assert exc_info.value.scenario_id == "nope"
        assert "nope" in str(exc_info.value)

    def test_fetch_returns_copies(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        fetched = service.fetch_scenario(created.id)
        fetched.name = "Changed locally"

        assert service.fetch_scenario(created.id).name == "Base Case"


class TestFetchScenarios:

    @pytest.fixture
    def service(self):
        service = build_service()
        service.create_scenario(scenario_data(name="Base Case", tags=["base"], fund_id="fund-1"))
        service.create_scenario(scenario_data(
            name="Downside", description="Slow exits", tags=["stress"], fund_id="fund-1",
        ))
        service.create_scenario(scenario_data(
            name="Upside", description="Strong IPO", tags=["stress", "ipo"], fund_id="fund-2",
            is_favorite=True,
        ))
        return service

    def test_all_in_creation_order(self, service):
        assert [s.name for s in service.fetch_scenarios()] == ["Base Case", "Downside", "Upside"]

    def test_filter_by_fund(self, service):
        assert [s.name for s in service.fetch_scenarios(fund_id="fund-1")] == ["Base Case", "Downside"]

    def test_filter_by_favorite(self, service):
        assert [s.name for s in service.fetch_scenarios(is_favorite=True)] == ["Upside"]
        assert len(service.fetch_scenarios(is_favorite=False)) == 2

    def test_filter_by_any_tag(self, service):
        assert [s.name for s in service.fetch_scenarios(tags=["ipo", "base"])] == ["Base Case", "Upside"]

    def test_search_name_and_description(self, service):
        assert [s.name for s in service.fetch_scenarios(search_query="DOWN")] == ["Downside"]
        assert [s.name for s in service.fetch_scenarios(search_query="ipo")] == ["Upside"]

    def test_filters_combine(self, service):
        assert service.fetch_scenarios(fund_id="fund-2", tags=["base"]) == []


# =============================================================================
# Mutations
# =============================================================================

class TestUpdate:

    def test_update_bumps_version_only_once(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        updated = service.update_scenario(created.id, {"exit_value": Decimal("200000000")})

        assert updated.version == created.version + 1
        assert updated.exit_value == Decimal("200000000")
        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at

    def test_update_cannot_change_identity(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        updated = service.update_scenario(created.id, {
            "id": "hijack",
            "created_at": datetime(2000, 1, 1, tzinfo=timezone.utc),
            "version": 99,
            "name": "Renamed",
        })

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.version == 2
        assert updated.name == "Renamed"

    def test_successive_updates(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        for expected in (2, 3, 4):
            assert service.update_scenario(created.id, {"name": f"v{expected}"}).version == expected

    def test_update_missing(self):
        with pytest.raises(ScenarioNotFoundError):
            build_service().update_scenario("nope", {"name": "x"})

    def test_invalid_update_leaves_stored_scenario(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        with pytest.raises(ValidationError):
            service.update_scenario(created.id, {"exit_value": Decimal("-1")})

        assert service.fetch_scenario(created.id) == created


class TestDuplicateDeleteFavorite:

    def test_duplicate(self):
        service = build_service()
        original = service.create_scenario(scenario_data(is_favorite=True))
        service.update_scenario(original.id, {"description": "edited"})

        duplicate = service.duplicate_scenario(original.id)

        assert duplicate.id != original.id
        assert duplicate.name == "Base Case (Copy)"
        assert duplicate.version == 1
        assert duplicate.is_favorite is False
        assert duplicate.description == "edited"
        assert len(service.fetch_scenarios()) == 2

    def test_duplicate_with_name(self):
        service = build_service()
        original = service.create_scenario(scenario_data())

        assert service.duplicate_scenario(original.id, "Alt").name == "Alt"

    def test_delete(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        service.delete_scenario(created.id)

        assert service.fetch_scenarios() == []
        with pytest.raises(ScenarioNotFoundError):
            service.delete_scenario(created.id)

    def test_toggle_favorite_is_a_versioned_update(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        toggled = service.toggle_favorite(created.id)
        toggled_back = service.toggle_favorite(created.id)

        assert toggled.is_favorite is True
        assert toggled.version == 2
        assert toggled_back.is_favorite is False
        assert toggled_back.version == 3


# =============================================================================
# Templates
# =============================================================================

class TestTemplates:

    def test_system_templates(self):
        templates = build_service().fetch_templates()

        assert "template-european-standard" in [t.id for t in templates]
        assert all(t.is_system for t in templates)
        assert templates == system_templates()

    def test_create_from_template(self):
        service = build_service()
        scenario = service.create_scenario_from_template(
            "template-european-standard",
            name="From Template",
            exit_value=Decimal("150000000"),
            total_invested=Decimal("100000000"),
            management_fees=Decimal("0"),
            created_by="analyst",
            fund_id="fund-9",
            investor_classes=build_investor_classes(),
        )

        assert scenario.version == 1
        assert scenario.model == "european"
        assert scenario.tags == ["european-standard"]
        assert scenario.description == "Created from template: European Standard"
        assert [t.id for t in scenario.tiers] == [f"{scenario.id}-tier-{i}" for i in (1, 2, 3, 4)]
        assert service.perform_waterfall_calculation(scenario_id=scenario.id).gp_carry == Decimal("26000000")

    def test_template_without_classes(self):
        scenario = build_service().create_scenario_from_template(
            "template-no-hurdle",
            name="Bare",
            exit_value=Decimal("10"),
            total_invested=Decimal("5"),
            management_fees=Decimal("0"),
            created_by="analyst",
        )

        assert scenario.investor_classes == []

    def test_unknown_template(self):
        with pytest.raises(TemplateNotFoundError):
            build_service().create_scenario_from_template(
                "template-missing",
                name="x",
                exit_value=Decimal("1"),
                total_invested=Decimal("1"),
                management_fees=Decimal("0"),
                created_by="analyst",
            )


# =============================================================================
# Calculations
# =============================================================================

class TestCalculations:

    def test_by_scenario_or_id(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        assert service.perform_waterfall_calculation(scenario=created) == \
            service.perform_waterfall_calculation(scenario_id=created.id)

    def test_requires_scenario_or_id(self):
        with pytest.raises(ValueError, match="scenario_id"):
            build_service().perform_waterfall_calculation()

    def test_model_override(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        results = service.perform_waterfall_calculation(scenario_id=created.id, model="american")

        assert results.gp_carry == Decimal("5200000")
        with pytest.raises(UnsupportedModelError):
            service.perform_waterfall_calculation(scenario=created, model="asian")

    def test_calculation_does_not_bump_version(self):
        service = build_service()
        created = service.create_scenario(scenario_data())
        service.perform_waterfall_calculation(scenario_id=created.id)

        assert service.fetch_scenario(created.id).version == 1

    def test_sensitivity(self):
        service = build_service()
        created = service.create_scenario(scenario_data())

        analysis = service.perform_sensitivity_analysis(created.id, steps=10)

        assert analysis.scenario_id == created.id
        assert len(analysis.data_points) == 11

    def test_compare_scenarios(self):
        service = build_service()
        european = service.create_scenario(scenario_data(name="EU"))
        american = service.create_scenario(scenario_data(name="US", model="american"))

        comparison = service.compare_scenarios([european.id, american.id])

        assert [m.scenario_name for m in comparison.comparison_metrics] == ["EU", "US"]
        assert [m.gp_carry for m in comparison.comparison_metrics] == [
            Decimal("26000000"),
            Decimal("5200000"),
        ]
        assert comparison.comparison_metrics[0].total_multiple == Decimal("1.5")


# =============================================================================
# Repositories
# =============================================================================

class TestRepositories:

    def test_stale_write_rejected(self):
        repository = InMemoryScenarioRepository()
        scenario = build_scenario(version=2)
        repository.put(scenario)

        with pytest.raises(StaleScenarioError):
            repository.put(scenario)
        with pytest.raises(StaleScenarioError):
            repository.put(scenario.model_copy(update={"version": 1}))

    def test_json_round_trip(self, tmp_path):
        path = tmp_path / "scenarios.json"
        service = build_service(JsonFileScenarioRepository(path))
        created = service.create_scenario(scenario_data(tags=["base"]))
        updated = service.update_scenario(created.id, {"is_favorite": True})

        reloaded = JsonFileScenarioRepository(path)

        assert reloaded.get(created.id) == updated
        assert len(json.loads(path.read_text())) == 1

    def test_json_delete_is_written_through(self, tmp_path):
        path = tmp_path / "scenarios.json"
        service = build_service(JsonFileScenarioRepository(path))
        created = service.create_scenario(scenario_data())
        service.delete_scenario(created.id)

        assert JsonFileScenarioRepository(path).list() == []

    def test_json_missing_file_is_empty(self, tmp_path):
        repository = JsonFileScenarioRepository(tmp_path / "missing.json")

        assert repository.list() == []
        assert not (tmp_path / "missing.json").exists()
