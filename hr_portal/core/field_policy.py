"""Client copy of the per-organization field policy.

The backend exports its policy table through ``GET /employment/form-options``
(``field_policy`` key). ``FieldPolicy`` answers the same visibility questions
locally so the wizard can decide which fields and steps to render without a
round trip per field.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

ALL = "all"


@dataclass(frozen=True)
class FieldPolicy:
    known_fields: Mapping[str, tuple[str, ...]]
    organizations: Mapping[str, Mapping[str, Any]]
    fallback: Mapping[str, Any]

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "FieldPolicy":
        """Build from a form-options body or from its ``field_policy`` part."""
        table = data.get("field_policy", data)
        try:
            return cls(
                known_fields={k: tuple(v) for k, v in table["known_fields"].items()},
                organizations={code.upper(): org for code, org in table["organizations"].items()},
                fallback=table["fallback"],
            )
        except (KeyError, AttributeError, TypeError) as exc:
            raise ValueError(f"Malformed field policy payload: {exc}") from exc

    def _org(self, organization: str | None) -> Mapping[str, Any]:
        if not organization:
            return self.fallback
        return self.organizations.get(organization.strip().upper(), self.fallback)

    def _section(self, organization: str | None, section: str) -> Mapping[str, Any]:
        try:
            return self._org(organization)["sections"][section]
        except KeyError as exc:
            raise ValueError(f"Unknown form section: {section}") from exc

    def is_section_visible(self, organization: str | None, section: str) -> bool:
        visible = self._section(organization, section)["visible"]
        return visible == ALL or bool(visible)

    def is_field_visible(self, organization: str | None, section: str, field_name: str) -> bool:
        sec = self._section(organization, section)
        if sec["visible"] == ALL:
            return field_name not in sec["hidden"]
        return field_name in sec["visible"]

    def visible_fields(self, organization: str | None, section: str) -> tuple[str, ...]:
        return tuple(
            name for name in self.known_fields.get(section, ()) if self.is_field_visible(organization, section, name)
        )

    def defaults_for_hidden(self, organization: str | None, section: str | None = None) -> dict[str, Any]:
        defaults = self._org(organization)["defaults"]
        if section is not None:
            self._section(organization, section)
            return dict(defaults.get(section, {}))
        merged: dict[str, Any] = {}
        for values in defaults.values():
            merged.update(values)
        return merged

    def required_fields(self, organization: str | None, section: str) -> tuple[str, ...]:
        self._section(organization, section)
        return tuple(self._org(organization)["required"].get(section, ()))

    def location_types(self, organization: str | None) -> tuple[str, ...]:
        return tuple(self._org(organization).get("location_types", ()))
