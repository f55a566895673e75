"""Tunable thresholds and lookup tables for the advisory validation pass.

Nothing here produces errors. The validator turns matches into warnings, and
callers can swap in their own `HeuristicRules` to tighten or silence them.
"""

from dataclasses import dataclass, field


# Entity-name fragment -> field-name hints we expect such an entity to carry.
DEFAULT_SUBSTRUCTURE_PATTERNS: dict[str, tuple[str, ...]] = {
    "Route": ("stops", "waypoints", "segments"),
    "Order": ("items", "payments", "addresses"),
    "User": ("profiles", "preferences", "contacts"),
    "Product": ("variants", "categories", "attributes"),
    "Invoice": ("lineItems", "payments", "addresses"),
    "Document": ("sections", "attachments", "comments"),
    "Course": ("lessons", "assignments", "resources"),
    "Event": ("attendees", "sessions", "resources"),
}


@dataclass
class HeuristicRules:
    """Thresholds for the complex-structure warnings."""

    min_entity_fields: int = 3
    max_json_properties: int = 2
    # Entities whose name contains one of these are allowed to be small
    small_entity_markers: tuple[str, ...] = ("Config", "Setting")
    substructure_patterns: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_SUBSTRUCTURE_PATTERNS)
    )

    def allows_few_fields(self, entity_name: str) -> bool:
        return any(marker in entity_name for marker in self.small_entity_markers)

    def expected_substructures(self, entity_name: str) -> list[tuple[str, tuple[str, ...]]]:
        """Patterns whose key occurs in `entity_name` (case-insensitive)."""
        lowered = entity_name.lower()
        return [
            (pattern, hints)
            for pattern, hints in self.substructure_patterns.items()
            if pattern.lower() in lowered
        ]

    @staticmethod
    def has_hint(field_names: list[str], hints: tuple[str, ...]) -> bool:
        """True when any field name contains any hint (case-insensitive)."""
        lowered = [name.lower() for name in field_names]
        return any(hint.lower() in name for hint in hints for name in lowered)
