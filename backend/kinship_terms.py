"""Javanese lineage terms for relationship paths.

Only straight-line generational terms are derived. Collateral relations
(cousins, nephews, ...) are not computed: a path that reverses direction
labels the reversing hop with its plain relationship instead.
"""

from models import PathNode, RelationshipKind

UNKNOWN_TERM = "Tidak Diketahui"

DESCENDING_TERMS = (
    "Diri Sendiri", "Anak", "Putu", "Buyut", "Canggah", "Wareng",
    "Udheg-udheg", "Gantung siwur", "Gropak senthe", "Debog bosok",
    "Galih asem", "Gropak waton", "Cendheng", "Giyeng",
)

ASCENDING_TERMS = (
    "Diri Sendiri", "Bapak/Ibu", "Simbah/Eyang", "Buyut", "Canggah", "Wareng",
    "Udheg-udheg", "Gantung siwur", "Gropak senthe", "Debog bosok",
    "Galih asem", "Gropak waton", "Cendheng", "Giyeng",
)

MAX_LINEAGE_LEVEL = len(DESCENDING_TERMS) - 1

ASCENDING = "up"
DESCENDING = "down"


def lineage_term(direction: str, level: int) -> str:
    """
    Generational term for a straight-line relative `level` generations away.

    Args:
        direction: ASCENDING ("up") for ancestors, DESCENDING ("down") for descendants
        level: generational distance, 0 being the person themself

    Returns:
        The fixed term up to MAX_LINEAGE_LEVEL, a synthesized numbered label
        beyond it, or UNKNOWN_TERM for a negative level.
    """
    if level < 0:
        return UNKNOWN_TERM
    if level > MAX_LINEAGE_LEVEL:
        label = "turunan mudhun" if direction == DESCENDING else "turunan munggah"
        return f"Generasi ke-{level} (Jawa: {label})"
    if direction == DESCENDING:
        return DESCENDING_TERMS[level]
    return ASCENDING_TERMS[level]


def annotate_with_kinship_terms(path: list[PathNode]) -> list[PathNode]:
    """
    Return a copy of a relationship path with display_term filled on every hop.

    Spouse hops keep the current direction and depth. Child and parent hops
    increase the depth; a hop that reverses an established direction falls
    back to its plain relationship name.
    """
    annotated: list[PathNode] = []
    direction = None
    depth = 0

    for index, node in enumerate(path):
        kind = node.relationship
        if index == 0 or kind is RelationshipKind.SELF:
            term = RelationshipKind.SELF.value
        elif kind is RelationshipKind.SPOUSE:
            term = RelationshipKind.SPOUSE.value
        else:
            hop_direction = ASCENDING if kind.is_parent else DESCENDING
            reversing = direction is not None and direction != hop_direction and depth > 0
            depth += 1
            direction = hop_direction
            term = kind.value if reversing else lineage_term(hop_direction, depth)
        annotated.append(node.model_copy(update={"display_term": term}))

    return annotated


def ahnentafel_term(number: int) -> str:
    """Display label for an Ahnentafel number in an ancestor tree."""
    if number == 1:
        return "Diri Sendiri"
    if number == 2:
        return "Bapak (A-2)"
    if number == 3:
        return "Ibu (A-3)"
    return f"A-{number}"
