"""Cart state for one booking: TV mounts, smart-home devices, removals, labor."""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class TVSize(str, Enum):
    SMALL = "small"  # 32"-55"
    LARGE = "large"  # 56"+


class MountLocation(str, Enum):
    STANDARD = "standard"
    FIREPLACE = "fireplace"
    CEILING = "ceiling"


class MountHardware(str, Enum):
    NONE = "none"  # customer provides their own mount
    FIXED = "fixed"
    TILTING = "tilting"
    FULL_MOTION = "full_motion"


class SmartDeviceType(str, Enum):
    CAMERA = "camera"
    DOORBELL = "doorbell"
    FLOODLIGHT = "floodlight"


def _clamp_count(value: Any) -> int:
    """Coerce a count to a non-negative integer; junk becomes 0."""
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or number <= 0:
        return 0
    if math.isinf(number):
        return 0
    return int(math.floor(number))


def _clamp_amount(value: Any) -> float:
    """Coerce a decimal amount (hours, minutes) to a non-negative float."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number <= 0:
        return 0.0
    return number


class TVMountItem(BaseModel):
    """One TV to be mounted, unmounted, or remounted."""

    model_config = ConfigDict(frozen=True)

    size: TVSize = TVSize.SMALL
    location: MountLocation = MountLocation.STANDARD
    mount_hardware: MountHardware = MountHardware.NONE
    non_drywall_surface: bool = False
    high_rise: bool = False
    outlet_install: bool = False
    unmount_only: bool = False
    remount_only: bool = False

    @property
    def is_flat_service(self) -> bool:
        """Unmount/remount-only items ignore every other mount option."""
        return self.unmount_only or self.remount_only


class SmartHomeItem(BaseModel):
    """A smart-home device line, priced per unit."""

    model_config = ConfigDict(frozen=True)

    type: SmartDeviceType
    quantity: int = 1
    brick_installation: bool = False
    existing_wiring: bool = True

    @field_validator("quantity", mode="before")
    @classmethod
    def _clamp_quantity(cls, value: Any) -> int:
        return _clamp_count(value)


class ServiceSelection(BaseModel):
    """
    Everything the customer has put in the cart so far.

    Immutable: the ``with_*`` helpers return a new selection so every
    wizard step can recompute a quote from scratch.
    """

    model_config = ConfigDict(frozen=True)

    tv_mounts: tuple[TVMountItem, ...] = ()
    smart_home_devices: tuple[SmartHomeItem, ...] = ()
    deinstallations: int = 0
    handyman_hours: float = 0.0
    travel_distance_minutes: float = 0.0

    @field_validator("deinstallations", mode="before")
    @classmethod
    def _clamp_deinstallations(cls, value: Any) -> int:
        return _clamp_count(value)

    @field_validator("handyman_hours", "travel_distance_minutes", mode="before")
    @classmethod
    def _clamp_amounts(cls, value: Any) -> float:
        return _clamp_amount(value)

    def is_empty(self) -> bool:
        return (
            not self.tv_mounts
            and not any(d.quantity > 0 for d in self.smart_home_devices)
            and self.deinstallations == 0
            and self.handyman_hours == 0
        )

    def with_tv_mount(self, item: TVMountItem) -> "ServiceSelection":
        return self.model_copy(update={"tv_mounts": self.tv_mounts + (item,)})

    def without_tv_mount(self, index: int) -> "ServiceSelection":
        mounts = list(self.tv_mounts)
        del mounts[index]
        return self.model_copy(update={"tv_mounts": tuple(mounts)})

    def with_smart_device(self, item: SmartHomeItem) -> "ServiceSelection":
        return self.model_copy(
            update={"smart_home_devices": self.smart_home_devices + (item,)}
        )

    def without_smart_device(self, index: int) -> "ServiceSelection":
        devices = list(self.smart_home_devices)
        del devices[index]
        return self.model_copy(update={"smart_home_devices": tuple(devices)})

    # model_copy skips validation, so the scalar setters go through
    # model_validate to keep the clamping rules.
    def with_deinstallations(self, count: Any) -> "ServiceSelection":
        return self._replace(deinstallations=count)

    def with_handyman_hours(self, hours: Any) -> "ServiceSelection":
        return self._replace(handyman_hours=hours)

    def with_travel_distance(self, minutes: Any) -> "ServiceSelection":
        return self._replace(travel_distance_minutes=minutes)

    def _replace(self, **changes: Any) -> "ServiceSelection":
        data = {
            "tv_mounts": self.tv_mounts,
            "smart_home_devices": self.smart_home_devices,
            "deinstallations": self.deinstallations,
            "handyman_hours": self.handyman_hours,
            "travel_distance_minutes": self.travel_distance_minutes,
        }
        data.update(changes)
        return ServiceSelection.model_validate(data)
