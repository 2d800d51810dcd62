"""Outline policies: map a contour estimate v to (alpha, source_color).

Black & white outline (default). Alpha is a tent around v = 0.5, doubled and
clamped so the middle half is opaque; the colour is contrast-stretched so the
stroke stays near black outside and near white inside:

    1|        ----------------
     |       /                \\
     |      /                  \\
     |     /                    \\
     |    /                      \\
     |---------------------------------
     0    0.25             0.75    1

Simple outline. A narrow tent around v = 0.25 in pure black, so only the
outside-facing half of the blurred boundary is drawn:

    1|        -
     |       / \\
     |      /   \\
     |     /     \\
     |---------------------------------
     0    0.25   0.5               1

Both policies accept scalars or numpy arrays. The style is resolved once at
setup via get_policy(); the pass never branches on it per pixel.
"""

from enum import Enum
from typing import Tuple, Union

import numpy as np


class OutlineStyle(str, Enum):
    BLACK_AND_WHITE = "black-and-white"
    SIMPLE = "simple"


class OutlinePolicy:
    """Strategy interface for alpha/colour mapping."""

    style: OutlineStyle

    def alpha(self, v):
        raise NotImplementedError

    def source_color(self, v):
        raise NotImplementedError

    def blend_parameters(self, v) -> Tuple:
        """Return (alpha, source_color) for v."""
        return self.alpha(v), self.source_color(v)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(style={self.style.value!r})"


class BlackAndWhitePolicy(OutlinePolicy):
    style = OutlineStyle.BLACK_AND_WHITE

    def alpha(self, v):
        return np.minimum((1.0 - np.abs(2.0 * v - 1.0)) * 2.0, 1.0)

    def source_color(self, v):
        return np.clip(v * 1.5 - 0.25, 0.0, 1.0)


class SimplePolicy(OutlinePolicy):
    style = OutlineStyle.SIMPLE

    def alpha(self, v):
        return np.maximum(1.0 - np.abs(4.0 * v - 1.0), 0.0)

    def source_color(self, v):
        # Pure black everywhere; keep the input's shape for array callers
        return np.zeros_like(v, dtype=np.float64)


_POLICIES = {
    OutlineStyle.BLACK_AND_WHITE: BlackAndWhitePolicy,
    OutlineStyle.SIMPLE: SimplePolicy,
}


def get_policy(style: Union[OutlineStyle, str] = OutlineStyle.BLACK_AND_WHITE) -> OutlinePolicy:
    """Instantiate the policy for a style (enum member or its string value).

    Raises
    ------
    ValueError
        If ``style`` is not a known outline style
    """
    try:
        style = OutlineStyle(style)
    except ValueError:
        allowed = [s.value for s in OutlineStyle]
        raise ValueError(f"outline_style must be one of {allowed}, got {style!r}") from None
    return _POLICIES[style]()
