"""Behaviour tests for editing and saving a page using pytest-bdd.

These scenarios drive :class:`df12_cms.controller.ContentController` the way
an admin panel does: editors publish save callbacks, content and style edits
are applied through paths, and a single save runs the callbacks before the
document is persisted.

Usage
-----
Run ``pytest tests/bdd/test_save_workflow.py -v``.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from df12_cms.controller import ContentController
from df12_cms.errors import PersistenceError
from df12_cms.save import DirtyStateTracker, SavePlan
from df12_cms.store import InMemoryDocumentStore

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "save_workflow.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


class RecordingStore(InMemoryDocumentStore):
    """In-memory store that logs persist calls into a shared event list."""

    def __init__(self, events: list[str]) -> None:
        super().__init__()
        self.events = events
        self.reject_writes = False

    async def persist(self, page: str, document: dict[str, typ.Any]) -> None:
        self.events.append("persist")
        if self.reject_writes:
            msg = "backend rejected the write"
            raise PersistenceError(msg)
        await super().persist(page, document)


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Returns
    -------
    ScenarioState
        Mutable dictionary used to exchange state between ``given``, ``when``,
        and ``then`` steps.
    """
    return {"events": [], "plan": None}


@given(parsers.parse('an empty page "{page}" in the document store'))
def given_empty_page(scenario_state: ScenarioState, page: str) -> None:
    scenario_state["page"] = page
    scenario_state["store"] = RecordingStore(scenario_state["events"])


@given(parsers.parse('the "{section}" section is wired to callbacks "{first}" and "{second}"'))
def given_wired_section(
    scenario_state: ScenarioState, section: str, first: str, second: str
) -> None:
    """Build a save plan for ``section`` and remember the callbacks to mount."""
    scenario_state["plan"] = SavePlan().with_section(section, [first, second])
    scenario_state["section"] = section
    scenario_state["callbacks"] = [first, second]


@given("the backend rejects writes")
def given_backend_rejects(scenario_state: ScenarioState) -> None:
    typ.cast("RecordingStore", scenario_state["store"]).reject_writes = True


def _controller(scenario_state: ScenarioState) -> ContentController:
    """Create and load the controller on first use."""
    controller = scenario_state.get("controller")
    if controller is not None:
        return typ.cast("ContentController", controller)

    events = typ.cast("list[str]", scenario_state["events"])
    controller = ContentController(
        typ.cast("RecordingStore", scenario_state["store"]),
        tracker=DirtyStateTracker(saved_display_seconds=None, error_display_seconds=None),
        plan=typ.cast("SavePlan | None", scenario_state["plan"]),
        active_section=scenario_state.get("section", "content"),
    )
    asyncio.run(controller.load(scenario_state["page"]))

    def recorder(name: str):
        async def callback(document: dict[str, typ.Any]) -> None:
            events.append(name)

        return callback

    for name in scenario_state.get("callbacks", []):
        controller.mount(name, recorder(name))
    scenario_state["controller"] = controller
    return controller


@when(parsers.parse('I set "{path}" to "{value}"'))
def when_set_value(scenario_state: ScenarioState, path: str, value: str) -> None:
    _controller(scenario_state).update_content(path, value)


@when("I save the page")
def when_save(scenario_state: ScenarioState) -> None:
    scenario_state["report"] = asyncio.run(_controller(scenario_state).save())


@then("each callback ran once in order")
def then_callbacks_in_order(scenario_state: ScenarioState) -> None:
    events = typ.cast("list[str]", scenario_state["events"])
    callbacks = scenario_state["callbacks"]
    assert [event for event in events if event in callbacks] == callbacks, (
        f"expected callbacks {callbacks} once each in order, got {events}"
    )


@then("the document was persisted once after the callbacks")
def then_persisted_after(scenario_state: ScenarioState) -> None:
    events = typ.cast("list[str]", scenario_state["events"])
    assert events.count("persist") == 1, f"expected one persist, got {events}"
    assert events[-1] == "persist", f"expected persist to run last, got {events}"


@then("the stored page has the title and the colour")
def then_stored_page(scenario_state: ScenarioState) -> None:
    store = typ.cast("RecordingStore", scenario_state["store"])
    stored = store.get(scenario_state["page"])
    assert stored == {
        "hero": {"title": "Welcome", "styles": {"modeA": {"titleColor": "#112233"}}}
    }, f"unexpected stored document: {stored}"


@then(parsers.parse('the save status is "{status}"'))
def then_status(scenario_state: ScenarioState, status: str) -> None:
    report = scenario_state["report"]
    assert report.status == status, f"expected status {status!r}, got {report.status!r}"


@then(parsers.parse('the in-memory document still has the title "{title}"'))
def then_document_kept(scenario_state: ScenarioState, title: str) -> None:
    controller = _controller(scenario_state)
    assert controller.document["hero"]["title"] == title
