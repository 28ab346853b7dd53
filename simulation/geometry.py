"""Visualization area and the volume-driven container rectangle."""

import math

MIN_VOLUME_FRACTION = 0.02
MAX_VOLUME_FRACTION = 0.95

GAUGE_WIDTH = 24
GAUGE_MARGIN = 10


class ContainerRect:
    """Axis-aligned rectangle in canvas pixels."""

    __slots__ = ("left", "top", "right", "bottom", "width", "height")

    def __init__(self, left, top, width, height):
        self.left = left
        self.top = top
        self.width = width
        self.height = height
        self.right = left + width
        self.bottom = top + height

    def contains(self, x, y):
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def __eq__(self, other):
        if not isinstance(other, ContainerRect):
            return NotImplemented
        return (self.left, self.top, self.width, self.height) == (other.left, other.top, other.width, other.height)

    def __repr__(self):
        return f"ContainerRect(left={self.left}, top={self.top}, width={self.width}, height={self.height})"

    def to_dict(self):
        return {"left": self.left, "top": self.top, "right": self.right, "bottom": self.bottom,
                "width": self.width, "height": self.height}


def volume_fraction(volume, volume_range):
    frac = volume_range.fraction(volume)
    return max(MIN_VOLUME_FRACTION, min(MAX_VOLUME_FRACTION, frac))


class VisualArea:
    """Fixed drawing area that hosts the container and the pressure gauge.

    The container may use ``max_width`` x ``max_height`` inside the padding;
    ``gauge_reserve`` pixels at the bottom are kept free for labels.
    """

    def __init__(self, canvas_width, canvas_height, padding, gauge_reserve):
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.padding = padding
        self.max_width = canvas_width - 2 * padding
        self.max_height = canvas_height - 2 * padding - gauge_reserve

    def container_for(self, volume, volume_range):
        frac = volume_fraction(volume, volume_range)
        width = math.floor(self.max_width * (0.45 + 0.45 * frac))
        height = math.floor(self.max_height * (0.25 + 0.65 * frac))
        left = self.padding + (self.max_width - width) / 2
        top = self.padding + (self.max_height - height) / 2
        return ContainerRect(left, top, width, height)

    def bounds(self):
        return ContainerRect(self.padding, self.padding, self.max_width, self.max_height)

    def gauge_rect(self):
        return ContainerRect(self.canvas_width - GAUGE_WIDTH - GAUGE_MARGIN, self.padding,
                             GAUGE_WIDTH, self.max_height)
