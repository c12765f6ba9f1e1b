import logging
from functools import cached_property
from typing import Any, Literal, Optional

from pydantic import AliasChoices, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from swapplanner.core.exceptions import UnknownColorError
from swapplanner.schemas.base import CamelModel

logger = logging.getLogger(__name__)


class Color(CamelModel):
    """
    One filament color of a print, as reported by the G-code parsing collaborator.
    Read-only to the planner.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable color / tool id, e.g. 'T0'")
    name: Optional[str] = Field(None, description="Display name, e.g. 'Signal Red'")
    hex_value: Optional[str] = Field(None, description="Hex RGB value, e.g. '#FF0000'")
    layers_used: frozenset[int] = Field(default_factory=frozenset)
    partial_layers: frozenset[int] = Field(
        default_factory=frozenset,
        description="Layers where the color is present but not dominant",
    )
    first_layer: int = 0
    last_layer: int = 0
    usage_percentage: float = Field(0.0, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def _derive_layer_bounds(cls, data: Any) -> Any:
        """Fills first/last layer from layersUsed when the producer omitted them."""
        if not isinstance(data, dict):
            return data
        layers = data.get("layersUsed", data.get("layers_used"))
        if not layers:
            return data

        data = dict(data)
        for field_name, pick in (("first_layer", min), ("last_layer", max)):
            if data.get(field_name) is None and data.get(to_camel(field_name)) is None:
                data[field_name] = pick(int(layer) for layer in layers)
        return data

    @field_serializer("layers_used", "partial_layers")
    def _serialize_layer_set(self, layers: frozenset[int]) -> list[int]:
        return sorted(layers)

    @classmethod
    def from_layers(
        cls,
        color_id: str,
        layers: set[int] | frozenset[int] | list[int],
        total_layers: int,
        name: Optional[str] = None,
        hex_value: Optional[str] = None,
        partial_layers: Optional[set[int]] = None,
    ) -> "Color":
        """Builds a Color whose derived fields satisfy the usage invariants."""
        layer_set = frozenset(layers)
        usage = (len(layer_set) / total_layers * 100) if total_layers > 0 else 0.0
        return cls(
            id=color_id,
            name=name,
            hex_value=hex_value,
            layers_used=layer_set,
            partial_layers=frozenset(partial_layers or ()),
            first_layer=min(layer_set) if layer_set else 0,
            last_layer=max(layer_set) if layer_set else 0,
            usage_percentage=min(100.0, usage),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def layer_count(self) -> int:
        return len(self.layers_used)

    @property
    def partial_layer_count(self) -> int:
        return len(self.partial_layers)

    def is_used_in_layer(self, layer: int) -> bool:
        return layer in self.layers_used

    def layer_usage(self, layer: int) -> Literal["primary", "partial", "none"]:
        if not self.is_used_in_layer(layer):
            return "none"
        return "partial" if layer in self.partial_layers else "primary"


class ToolChange(CamelModel):
    """A tool change event from the G-code, in print order."""

    model_config = ConfigDict(frozen=True)

    from_tool: str
    to_tool: str
    at_layer: int = Field(..., ge=0, validation_alias=AliasChoices("atLayer", "at_layer", "layer"))

    @field_validator("from_tool", "to_tool", mode="before")
    @classmethod
    def _tool_id_as_str(cls, v: Any) -> Any:
        # Parsers report bare tool numbers; colors are keyed "T<n>"
        if isinstance(v, int) and not isinstance(v, bool):
            return f"T{v}"
        return v


class ColorUsageProfile(CamelModel):
    """
    The complete, immutable input of a planning run: which colors are used on
    which layers, plus the original tool-change sequence.
    """

    model_config = ConfigDict(frozen=True)

    total_layers: int = Field(..., ge=0)
    total_height: float = Field(0.0, ge=0, description="Print height in mm")
    colors: list[Color]
    tool_changes: list[ToolChange] = Field(default_factory=list)
    layer_color_map: dict[int, list[str]] = Field(
        default_factory=dict,
        description="Layer index -> ids of the colors active in that layer",
    )
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def _check_unique_color_ids(self) -> "ColorUsageProfile":
        seen = set()
        for color in self.colors:
            if color.id in seen:
                raise ValueError(f"Duplicate color id: {color.id}")
            seen.add(color.id)
        return self

    @cached_property
    def color_index(self) -> dict[str, Color]:
        return {color.id: color for color in self.colors}

    @cached_property
    def declaration_order(self) -> dict[str, int]:
        return {color.id: index for index, color in enumerate(self.colors)}

    def get_color(self, color_id: str) -> Optional[Color]:
        return self.color_index.get(color_id)

    def require_color(self, color_id: str) -> Color:
        """Strict lookup. Raises UnknownColorError for ids the profile does not declare."""
        color = self.color_index.get(color_id)
        if color is None:
            raise UnknownColorError(color_id)
        return color

    @cached_property
    def known_tool_changes(self) -> list[ToolChange]:
        """
        Tool changes between declared colors.
        Changes naming an unknown color are skipped, with one warning each per profile.
        """
        known = []
        for change in self.tool_changes:
            try:
                self.require_color(change.from_tool)
                self.require_color(change.to_tool)
            except UnknownColorError as e:
                logger.warning(
                    f"Tool change {change.from_tool} -> {change.to_tool} at layer {change.at_layer}: {e}. Skipping."
                )
                continue
            known.append(change)
        return known

    def used_colors(self) -> list[Color]:
        """Colors that appear on at least one layer, in declaration order."""
        return [color for color in self.colors if color.layers_used]

    def colors_in_layer(self, layer: int) -> list[str]:
        """
        Distinct color ids active in a layer.
        The layer map is authoritative; Color.layers_used is only consulted for
        layers the map does not mention.
        """
        if layer in self.layer_color_map:
            return list(dict.fromkeys(self.layer_color_map[layer]))
        return [color.id for color in self.colors if color.is_used_in_layer(layer)]
