"""Family graph queries: relationship accessors, tree building and path finding.

Every function takes the individuals/families collections as arguments and
never mutates them. Parent lookups trust ``Individual.child_in_family_id``;
child lookups trust ``Family.children_ids``. The two are not cross-checked.
"""

import logging
from collections import deque
from typing import Any, Mapping

from models import (
    Family,
    Individual,
    Orientation,
    PathNode,
    RelationshipKind,
    TreeNode,
)
from kinship_terms import ahnentafel_term

logger = logging.getLogger("silsilah.family_utils")

Individuals = Mapping[str, Individual]
Families = Mapping[str, Family]
SpouseIndex = Mapping[str, list[Family]]


# ============================================================================
# Helper: Spouse index and lookups
# ============================================================================

def build_spouse_index(families: Families) -> dict[str, list[Family]]:
    """Map each individual id to the families in which it occupies a spouse slot."""
    index: dict[str, list[Family]] = {}
    for family in families.values():
        for spouse_id in dict.fromkeys((family.spouse1_id, family.spouse2_id)):
            if spouse_id:
                index.setdefault(spouse_id, []).append(family)
    return index


def _spouse_families(individual_id: str, families: Families, spouse_index: SpouseIndex | None) -> list[Family]:
    if spouse_index is not None:
        return list(spouse_index.get(individual_id, []))
    return [f for f in families.values() if f.has_spouse(individual_id)]


def _parent_family(individual: Individual, families: Families) -> Family | None:
    if not individual.child_in_family_id:
        return None
    family = families.get(individual.child_in_family_id)
    if family is None:
        logger.debug(
            f"{individual.id} references missing family {individual.child_in_family_id}"
        )
    return family


def find_individual(individuals: Individuals, identifier: str) -> Individual | None:
    """
    Find an individual by ID or name.
    Tries an exact ID first, then an exact name, then a partial name match
    (both case-insensitive).
    """
    identifier = identifier.strip()
    if identifier in individuals:
        return individuals[identifier]

    name_lower = identifier.lower()
    if not name_lower:
        return None

    partial = None
    for individual in individuals.values():
        full_name = individual.name.strip().lower()
        if full_name == name_lower:
            return individual
        if partial is None and name_lower in full_name:
            partial = individual
    return partial


def get_all_individuals(individuals: Individuals) -> list[Individual]:
    """All individuals sorted by display name."""
    return sorted(individuals.values(), key=lambda i: (i.name.lower(), i.id))


# ============================================================================
# Family Relationship Accessors
# ============================================================================

def parent_slots(
    individual_id: str,
    individuals: Individuals,
    families: Families,
) -> list[tuple[RelationshipKind, Individual]]:
    """
    Parents of a person with the slot they occupy in the parent family.
    Slot 1 is reported as FATHER and slot 2 as MOTHER, by field order only.
    """
    individual = individuals.get(individual_id)
    if individual is None:
        return []

    family = _parent_family(individual, families)
    if family is None:
        return []

    slots = []
    seen_ids = set()
    for kind, parent_id in (
        (RelationshipKind.FATHER, family.spouse1_id),
        (RelationshipKind.MOTHER, family.spouse2_id),
    ):
        if parent_id and parent_id not in seen_ids and parent_id in individuals:
            seen_ids.add(parent_id)
            slots.append((kind, individuals[parent_id]))
    return slots


def parents_of(individual_id: str, individuals: Individuals, families: Families) -> list[Individual]:
    """Get the (0, 1 or 2) parents of a person."""
    return [parent for _, parent in parent_slots(individual_id, individuals, families)]


def spouses_of(
    individual_id: str,
    individuals: Individuals,
    families: Families,
    spouse_index: SpouseIndex | None = None,
) -> list[Individual]:
    """Get every partner of a person across all families, without duplicates."""
    spouses = []
    seen_ids = {individual_id}
    for family in _spouse_families(individual_id, families, spouse_index):
        spouse_id = family.other_spouse(individual_id)
        if spouse_id and spouse_id not in seen_ids and spouse_id in individuals:
            seen_ids.add(spouse_id)
            spouses.append(individuals[spouse_id])
    return spouses


def children_of(
    individual_id: str,
    individuals: Individuals,
    families: Families,
    spouse_index: SpouseIndex | None = None,
) -> list[Individual]:
    """Get the children of a person across all families in which they are a spouse."""
    children = []
    seen_ids = set()
    for family in _spouse_families(individual_id, families, spouse_index):
        for child_id in family.children_ids:
            if child_id not in seen_ids and child_id in individuals:
                seen_ids.add(child_id)
                children.append(individuals[child_id])
    return children


def siblings_of(individual_id: str, individuals: Individuals, families: Families) -> list[Individual]:
    """Get the siblings of a person (other children of their parent family)."""
    individual = individuals.get(individual_id)
    if individual is None:
        return []

    family = _parent_family(individual, families)
    if family is None:
        return []

    return [
        individuals[child_id]
        for child_id in family.children_ids
        if child_id != individual_id and child_id in individuals
    ]


def direct_relations(
    individual_id: str,
    individuals: Individuals,
    families: Families,
) -> list[dict[str, Any]] | None:
    """
    Group the direct relations of a person: children, spouses, parents, siblings.
    Each group is sorted by name and empty groups are left out.
    Returns None if the person does not exist.
    """
    if individual_id not in individuals:
        return None

    spouse_index = build_spouse_index(families)
    groups = [
        ("Anak", children_of(individual_id, individuals, families, spouse_index)),
        ("Pasangan", spouses_of(individual_id, individuals, families, spouse_index)),
        ("Orang Tua", parents_of(individual_id, individuals, families)),
        ("Saudara Kandung", siblings_of(individual_id, individuals, families)),
    ]
    return [
        {"type": label, "individuals": sorted(members, key=lambda i: i.name)}
        for label, members in groups
        if members
    ]


def find_root_ancestors(individuals: Individuals, families: Families) -> list[Individual]:
    """Find individuals who have no known parents."""
    return [
        individual
        for individual in get_all_individuals(individuals)
        if not parents_of(individual.id, individuals, families)
    ]


def find_youngest_generation(individuals: Individuals, families: Families) -> list[Individual]:
    """Find individuals who are not a spouse in any family with children."""
    parent_ids = set()
    for family in families.values():
        if any(child_id in individuals for child_id in family.children_ids):
            parent_ids.update(pid for pid in (family.spouse1_id, family.spouse2_id) if pid)

    return [i for i in get_all_individuals(individuals) if i.id not in parent_ids]


def detect_circular_ancestry(
    person_id: str,
    potential_parent_id: str,
    individuals: Individuals,
    families: Families,
) -> bool:
    """
    Check if making potential_parent a parent of person would create circular ancestry.
    Returns True if person is potential_parent itself or one of its ancestors.
    """
    visited: set[str] = set()
    stack = [potential_parent_id]
    while stack:
        pid = stack.pop()
        if pid in visited:
            continue
        visited.add(pid)
        stack.extend(parent.id for parent in parents_of(pid, individuals, families))
    return person_id in visited


# ============================================================================
# Hierarchy Builder
# ============================================================================

def build_hierarchy(
    root_id: str,
    individuals: Individuals,
    families: Families,
    orientation: Orientation | str = Orientation.DESCENDANTS,
    max_depth: int | None = None,
) -> TreeNode | None:
    """
    Build a rooted tree from a person of interest.

    In descendants mode each node's children are the children of every family
    in which that person is a spouse; a family is expanded at most once per
    build. In ancestors mode each node's children are its (up to two) parents,
    numbered Ahnentafel style; an ancestor already on the current branch is
    not expanded again.

    Returns None if root_id does not exist. Missing relatives are skipped.
    """
    root = individuals.get(root_id)
    if root is None:
        logger.debug(f"Hierarchy root {root_id} not found")
        return None

    orientation = Orientation(orientation)

    if orientation is Orientation.ANCESTORS:
        return _build_ancestor_tree(root, individuals, families, max_depth)
    return _build_descendant_tree(root, individuals, families, max_depth)


def _build_descendant_tree(
    root: Individual,
    individuals: Individuals,
    families: Families,
    max_depth: int | None,
) -> TreeNode:
    """Build the descendant tree depth-first with an explicit stack."""
    spouse_index = build_spouse_index(families)
    visited_families: set[str] = set()

    tree = TreeNode(individual=root)
    stack = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        if max_depth is not None and depth >= max_depth:
            continue

        for family in spouse_index.get(node.individual.id, []):
            if family.id in visited_families:
                continue
            visited_families.add(family.id)
            for child_id in family.children_ids:
                child = individuals.get(child_id)
                if child is None:
                    logger.debug(f"Family {family.id} references missing child {child_id}")
                    continue
                node.children.append(TreeNode(individual=child))

        # Reversed so the first child is expanded first
        stack.extend((child, depth + 1) for child in reversed(node.children))
    return tree


def _build_ancestor_tree(
    root: Individual,
    individuals: Individuals,
    families: Families,
    max_depth: int | None,
) -> TreeNode:
    """Build the ancestor tree; each stack entry carries the ids on its own branch."""
    tree = TreeNode(individual=root, ahnentafel=1)
    stack = [(tree, 0, frozenset({root.id}))]
    while stack:
        node, depth, branch = stack.pop()
        if max_depth is not None and depth >= max_depth:
            continue

        individual = node.individual
        pending = []
        for kind, parent in parent_slots(individual.id, individuals, families):
            if parent.id in branch:
                logger.debug(f"Circular ancestry: {parent.id} is already an ancestor of {individual.id}")
                continue
            number = node.ahnentafel * 2 if kind is RelationshipKind.FATHER else node.ahnentafel * 2 + 1
            parent_node = TreeNode(individual=parent, ahnentafel=number)
            node.children.append(parent_node)
            pending.append((parent_node, depth + 1, branch | {parent.id}))

        stack.extend(reversed(pending))
    return tree


def tree_to_d3(node: TreeNode) -> dict[str, Any]:
    """
    Convert a tree into the nested dict shape consumed by D3.js hierarchy layouts.
    Leaf nodes carry no "children" key.
    """
    root: list[dict[str, Any]] = []
    stack = [(node, root)]
    while stack:
        current, siblings = stack.pop()
        individual = current.individual
        data: dict[str, Any] = {
            "id": individual.id,
            "name": individual.name,
            "gender": individual.gender.value,
            "birthDate": individual.birth_date,
            "deathDate": individual.death_date,
            "photoUrl": individual.photo_url,
        }
        if current.ahnentafel is not None:
            data["ahnentafel"] = current.ahnentafel
            data["ahnentafelTerm"] = ahnentafel_term(current.ahnentafel)
        siblings.append(data)

        if current.children:
            data["children"] = []
            stack.extend((child, data["children"]) for child in reversed(current.children))
    return root[0]


# ============================================================================
# Relationship Path Finder
# ============================================================================

def find_relationship_path(
    start_id: str,
    end_id: str,
    individuals: Individuals,
    families: Families,
) -> list[PathNode] | None:
    """
    Find the shortest relationship path between two people.

    Breadth-first search over child, parent and spouse edges, expanded in that
    order. Each hop records its relationship to the previous person. Returns
    None when start equals end, either id is unknown, or no path exists.
    """
    if not start_id or not end_id or start_id == end_id:
        return None

    start = individuals.get(start_id)
    end = individuals.get(end_id)
    if start is None or end is None:
        logger.debug(f"Path search skipped: {start_id if start is None else end_id} not found")
        return None

    logger.debug(f"Searching relationship path from {start.name} ({start_id}) to {end.name} ({end_id})")

    spouse_index = build_spouse_index(families)
    queue: deque[tuple[str, list[PathNode]]] = deque()
    queue.append((start_id, [PathNode(individual_id=start_id, name=start.name, relationship=RelationshipKind.SELF)]))
    visited = {start_id}

    def visit(person: Individual, kind: RelationshipKind, path: list[PathNode]) -> None:
        if person.id in visited:
            return
        visited.add(person.id)
        queue.append((person.id, path + [PathNode(individual_id=person.id, name=person.name, relationship=kind)]))

    while queue:
        current_id, path = queue.popleft()
        if current_id == end_id:
            logger.debug(f"Relationship path found with {len(path) - 1} hops")
            return path

        for child in children_of(current_id, individuals, families, spouse_index):
            visit(child, RelationshipKind.CHILD, path)

        for kind, parent in parent_slots(current_id, individuals, families):
            visit(parent, kind, path)

        for spouse in spouses_of(current_id, individuals, families, spouse_index):
            visit(spouse, RelationshipKind.SPOUSE, path)

    logger.debug(f"No relationship path between {start_id} and {end_id}")
    return None
