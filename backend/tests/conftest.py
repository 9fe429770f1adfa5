"""Shared fixtures for the family graph tests.

Uses the sample-family.json file (British royal family) plus small
hand-built graphs.
"""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import Family, FamilySnapshot, Individual, load_snapshot


def make_graph(individuals, families):
    """Build (individuals, families) dicts from (id, name[, child_in_family_id]) tuples and Family kwargs."""
    people = {}
    for record in individuals:
        person_id, name, *rest = record
        people[person_id] = Individual(
            id=person_id,
            name=name,
            child_in_family_id=rest[0] if rest else None,
        )
    unions = {f["id"]: Family(**f) for f in families}
    return people, unions


@pytest.fixture
def sample_family_path():
    """Path to the sample family data file."""
    return os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
        "sample-family.json"
    )


@pytest.fixture
def snapshot(sample_family_path) -> FamilySnapshot:
    """Load the sample family snapshot."""
    return load_snapshot(sample_family_path)


@pytest.fixture
def individuals(snapshot):
    return snapshot.individuals


@pytest.fixture
def families(snapshot):
    return snapshot.families


@pytest.fixture
def windsor_core():
    """Philip and Elizabeth with children Charles and Anne."""
    return make_graph(
        [("E", "Elizabeth"), ("P", "Philip"), ("C", "Charles", "f1"), ("A", "Anne", "f1")],
        [{"id": "f1", "spouse1_id": "P", "spouse2_id": "E", "children_ids": ["C", "A"]}],
    )
