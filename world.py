"""
Occupancy surface for the arena simulation.

The surface covers the arena plus its border:
  (width + 2*border) x (height + 2*border) cells, indexed [y, x].

A cell is either background (False) or occupied (True). Border bands and
obstacle strokes are occupied; creatures are never drawn here, so sensing
and collision only ever see border + obstacles. The surface is rebuilt from
scratch every tick and doubles as a spatial index: rays are marched through
it in unit steps and creature bodies are sampled against it.

A separate RGB display frame is rendered from it (plus the creatures) for
the outer layers to show.
"""

import math
import numpy as np
from config import (
    ARENA_WIDTH, ARENA_HEIGHT, BORDER_WIDTH, OBSTACLE_WIDTH,
    NO_HIT_DISTANCE, BG_COLOR, SOLID_COLOR, MARKER_COLOR,
    MARKER_RADIUS, MARKER_OFFSET, CREATURE_RADIUS,
)


class OccupancySurface:
    """
    Rasterized border + obstacle geometry used for sensing and death checks.
    All coordinates taken by its methods are surface coordinates (arena
    coordinates shifted by the border width).
    """

    def __init__(self, width: int = ARENA_WIDTH, height: int = ARENA_HEIGHT,
                 border_width: int = BORDER_WIDTH):
        self.width        = width
        self.height       = height
        self.border_width = border_width
        self.frame_width  = width  + 2 * border_width
        self.frame_height = height + 2 * border_width
        # grid[y][x] = True if occupied
        self.grid  = np.zeros((self.frame_height, self.frame_width), dtype=bool)
        self.frame = np.empty((self.frame_height, self.frame_width, 3),
                              dtype=np.uint8)
        self.frame[:] = BG_COLOR
        # enough unit steps to leave the surface from any point inside it
        self._max_steps = int(math.ceil(math.hypot(self.frame_width,
                                                   self.frame_height))) + 2

    # ──────────────────────────────────────────────────────────────────────────
    # Rasterization
    # ──────────────────────────────────────────────────────────────────────────

    def rebuild_border(self):
        """Mark the four border bands occupied and clear the interior."""
        b  = self.border_width
        fw = self.frame_width
        fh = self.frame_height
        g  = self.grid
        g[:b, :]      = True     # top
        g[b:, :b]     = True     # left
        g[b:, fw - b:] = True    # right
        g[fh - b:, b:fw - b] = True   # bottom
        g[b:fh - b, b:fw - b] = False

    def draw_segment(self, x0: float, y0: float, x1: float, y1: float,
                     line_width: float = OBSTACLE_WIDTH):
        """
        Stroke a segment: every cell whose centre lies within line_width/2
        of the segment becomes occupied.
        """
        hw = line_width / 2.0
        x_lo = max(0, int(math.floor(min(x0, x1) - hw)))
        x_hi = min(self.frame_width,  int(math.ceil(max(x0, x1) + hw)) + 1)
        y_lo = max(0, int(math.floor(min(y0, y1) - hw)))
        y_hi = min(self.frame_height, int(math.ceil(max(y0, y1) + hw)) + 1)
        if x_lo >= x_hi or y_lo >= y_hi:
            return

        px = np.arange(x_lo, x_hi, dtype=np.float64)[None, :] + 0.5
        py = np.arange(y_lo, y_hi, dtype=np.float64)[:, None] + 0.5
        vx, vy = x1 - x0, y1 - y0
        seg_len2 = vx * vx + vy * vy
        if seg_len2 == 0.0:
            t = 0.0
        else:
            t = np.clip(((px - x0) * vx + (py - y0) * vy) / seg_len2, 0.0, 1.0)
        dx = px - (x0 + t * vx)
        dy = py - (y0 + t * vy)
        self.grid[y_lo:y_hi, x_lo:x_hi] |= (dx * dx + dy * dy) <= hw * hw

    def draw_obstacle(self, obstacle):
        """Stroke an obstacle given in arena coordinates."""
        b = self.border_width
        ex, ey = obstacle.end_point()
        self.draw_segment(b + obstacle.x, b + obstacle.y, b + ex, b + ey)

    # ──────────────────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────────────────

    def is_occupied(self, x: int, y: int) -> bool:
        if 0 <= x < self.frame_width and 0 <= y < self.frame_height:
            return bool(self.grid[y, x])
        return True

    def distance_along_ray(self, x: float, y: float, angle: float) -> float:
        """
        March from (x, y) along `angle` in unit steps, starting one step out.
        Returns the distance to the first occupied cell, or NO_HIT_DISTANCE
        if the ray leaves the surface first.
        """
        ax = math.cos(angle)
        ay = math.sin(angle)
        # cumsum adds sequentially, same as x += ax in a loop
        xs = np.full(self._max_steps, ax)
        ys = np.full(self._max_steps, ay)
        xs[0] = x + ax
        ys[0] = y + ay
        np.cumsum(xs, out=xs)
        np.cumsum(ys, out=ys)

        inside = ((xs >= 0) & (xs < self.frame_width) &
                  (ys >= 0) & (ys < self.frame_height))
        n = int(np.argmin(inside)) if not inside.all() else len(inside)
        if n == 0:
            return NO_HIT_DISTANCE

        hits = self.grid[ys[:n].astype(np.intp), xs[:n].astype(np.intp)]
        if not hits.any():
            return NO_HIT_DISTANCE
        i = int(np.argmax(hits))
        return math.sqrt((x - xs[i]) ** 2 + (y - ys[i]) ** 2)

    def is_colliding(self, x: float, y: float,
                     radius: int = CREATURE_RADIUS) -> bool:
        """
        Sample every cell of the bounding square whose distance from (x, y)
        is within `radius`. Occupied or off-surface cells mean a collision.
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            return True
        ix, iy = int(x), int(y)
        cxs = np.arange(ix - radius, ix + radius + 1)
        cys = np.arange(iy - radius, iy + radius + 1)
        dist = np.sqrt((cxs[None, :] - x) ** 2 + (cys[:, None] - y) ** 2)
        body = dist <= radius

        inside = (((cxs >= 0) & (cxs < self.frame_width))[None, :] &
                  ((cys >= 0) & (cys < self.frame_height))[:, None])
        if (body & ~inside).any():
            return True
        cells = self.grid[np.clip(cys, 0, self.frame_height - 1)[:, None],
                          np.clip(cxs, 0, self.frame_width - 1)[None, :]]
        return bool((cells & body).any())

    # ──────────────────────────────────────────────────────────────────────────
    # Display frame
    # ──────────────────────────────────────────────────────────────────────────

    def _fill_disc(self, cx: float, cy: float, radius: float, color):
        x_lo = max(0, int(math.floor(cx - radius)))
        x_hi = min(self.frame_width,  int(math.ceil(cx + radius)) + 1)
        y_lo = max(0, int(math.floor(cy - radius)))
        y_hi = min(self.frame_height, int(math.ceil(cy + radius)) + 1)
        if x_lo >= x_hi or y_lo >= y_hi:
            return
        px = np.arange(x_lo, x_hi, dtype=np.float64)[None, :] + 0.5
        py = np.arange(y_lo, y_hi, dtype=np.float64)[:, None] + 0.5
        mask = (px - cx) ** 2 + (py - cy) ** 2 <= radius * radius
        self.frame[y_lo:y_hi, x_lo:x_hi][mask] = color

    def render_frame(self, creatures, radius: int = CREATURE_RADIUS) -> np.ndarray:
        """
        Paint border, obstacles and creatures (body plus a forward marker)
        into the RGB display frame. The occupancy grid is left untouched.
        """
        self.frame[:] = BG_COLOR
        self.frame[self.grid] = SOLID_COLOR
        b = self.border_width
        for c in creatures:
            if not (math.isfinite(c.x) and math.isfinite(c.y)):
                continue
            self._fill_disc(b + c.x, b + c.y, radius, c.color)
            self._fill_disc(b + c.x + math.cos(c.angle) * MARKER_OFFSET,
                            b + c.y + math.sin(c.angle) * MARKER_OFFSET,
                            MARKER_RADIUS, MARKER_COLOR)
        return self.frame
