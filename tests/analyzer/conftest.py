"""Shared graph fixtures for analyzer tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from entity_builders import fk_field, make_entity, rel

from entitygraph.analyzer.graph import build_domain_graph
from entitygraph.analyzer.models import DomainGraph, Entity, Field


@pytest.fixture
def person_meeting_action_item() -> DomainGraph:
    """person has_many meetings has_many action_items, with belongs_to back-links."""
    person = make_entity(
        "person",
        plural="people",
        relationships=[rel("meetings", "has_many", "meeting", "person_id")],
    )
    meeting = make_entity(
        "meeting",
        fields={
            "id": Field(name="id", type="uuid", required=True),
            "person_id": fk_field("person_id", "people"),
        },
        relationships=[
            rel("person", "belongs_to", "person", "person_id"),
            rel("action_items", "has_many", "action_item", "meeting_id"),
        ],
    )
    action_item = make_entity(
        "action_item",
        fields={
            "id": Field(name="id", type="uuid", required=True),
            "meeting_id": fk_field("meeting_id", "meetings"),
        },
        relationships=[rel("meeting", "belongs_to", "meeting", "meeting_id")],
    )
    return build_domain_graph([person, meeting, action_item])


@pytest.fixture
def graph_factory() -> Callable[..., DomainGraph]:
    def _build(*entities: Entity) -> DomainGraph:
        return build_domain_graph(list(entities))

    return _build
