import logging

from swapplanner.core.exceptions import UnknownColorError
from swapplanner.schemas.optimization import ManualSwap, SlotAssignment
from swapplanner.schemas.profile import Color, ColorUsageProfile

logger = logging.getLogger("SwapScheduler")


def _z_height(layer: int, profile: ColorUsageProfile) -> float:
    if profile.total_layers <= 0:
        return 0.0
    return round(layer / profile.total_layers * profile.total_height, 3)


def _resolve_members(assignment: SlotAssignment, profile: ColorUsageProfile) -> list[Color]:
    members = []
    for color_id in assignment.colors:
        try:
            color = profile.require_color(color_id)
        except UnknownColorError as e:
            logger.warning(f"Slot {assignment.slot}: {e}. Skipping.")
            continue
        if not color.layers_used:
            logger.warning(f"Slot {assignment.slot}: color {color_id} has no usage data. Skipping.")
            continue
        members.append(color)
    return members


def generate_swaps(assignments: list[SlotAssignment], profile: ColorUsageProfile) -> list[ManualSwap]:
    """
    Derives the manual swaps implied by shared slots.
    The previous color leaves the slot on the layer right after its last use.
    Pure and deterministic: the same assignments always yield the same list.
    """
    order = profile.declaration_order
    swaps = []

    for assignment in assignments:
        if len(assignment.colors) < 2:
            continue

        members = sorted(
            _resolve_members(assignment, profile),
            key=lambda c: (c.first_layer, order.get(c.id, len(order))),
        )
        for prev, nxt in zip(members, members[1:]):
            at_layer = prev.last_layer + 1
            swaps.append(ManualSwap(
                slot=assignment.slot,
                unit=assignment.unit,
                from_color=prev.id,
                to_color=nxt.id,
                at_layer=at_layer,
                z_height=_z_height(at_layer, profile),
                reason=f"{prev.id} ends at layer {prev.last_layer}, {nxt.id} starts at layer {nxt.first_layer}",
            ))

    swaps.sort(key=lambda s: s.at_layer)
    logger.info(f"Generated {len(swaps)} manual swaps from {len(assignments)} slot assignments")
    return swaps
