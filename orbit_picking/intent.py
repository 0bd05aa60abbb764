from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Tuple


class ScrollUnit(enum.Enum):
    PIXEL = "pixel"
    LINE = "line"


@dataclass(frozen=True)
class InputSnapshot:
    """Everything the host observed since the previous frame.

    The host accumulates deltas between ticks and hands over one snapshot per
    frame; nothing here is retained across frames.
    """

    mouse_delta: Tuple[float, float] = (0.0, 0.0)
    scroll: Tuple[float, float] = (0.0, 0.0)
    scroll_unit: ScrollUnit = ScrollUnit.PIXEL
    alt: bool = False
    shift: bool = False
    left: bool = False
    middle: bool = False
    right: bool = False
    cursor: Tuple[float, float] = (0.0, 0.0)
    window_size: Tuple[float, float] = (1.0, 1.0)


class CameraManipulation:
    __slots__ = ()


@dataclass(frozen=True)
class Pan(CameraManipulation):
    delta: Tuple[float, float]


@dataclass(frozen=True)
class Orbit(CameraManipulation):
    delta: Tuple[float, float]


@dataclass(frozen=True)
class Rotate(CameraManipulation):
    delta: Tuple[float, float]


@dataclass(frozen=True)
class Zoom(CameraManipulation):
    scroll: Tuple[float, float]
    unit: ScrollUnit = ScrollUnit.PIXEL


def classify_input(snapshot: InputSnapshot) -> CameraManipulation | None:
    if snapshot.alt and snapshot.middle:
        return Pan(snapshot.mouse_delta)
    if snapshot.shift and snapshot.middle:
        return Rotate(snapshot.mouse_delta)
    if snapshot.middle:
        return Orbit(snapshot.mouse_delta)
    if snapshot.scroll[1] != 0.0:
        return Zoom(snapshot.scroll, snapshot.scroll_unit)
    return None
