"""
Arena Evolution Configuration
All tunable parameters for the creature / obstacle simulation.
"""

import sys

# ─── Arena ────────────────────────────────────────────────────────────────────
ARENA_WIDTH  = 405   # simulation area width  (pixels)
ARENA_HEIGHT = 720   # simulation area height (pixels)
BORDER_WIDTH = 16    # solid border drawn around the simulation area

# ─── Creatures ────────────────────────────────────────────────────────────────
CREATURE_RADIUS = 6              # body radius; touching anything solid is fatal
MIN_CREATURES   = 10             # population floor, topped up every tick
MAX_CREATURES   = 2 * MIN_CREATURES   # ceiling for evolution-cycle spawning
MAX_SCORE       = 2**63 - 1      # scores saturate here
TURN_DIVISOR    = 8.0            # angle += turn / TURN_DIVISOR
MOVE_SPEED      = 4.0            # distance moved per tick at move == 1

# ─── Obstacles ────────────────────────────────────────────────────────────────
NUM_OBSTACLES      = 6      # target number of moving obstacles
OBSTACLE_WIDTH     = 3      # stroke thickness of obstacle lines
OBSTACLE_MIN_SPEED = 0.5    # |dx|, |dy| are pushed away from zero by this

# ─── Evolution ────────────────────────────────────────────────────────────────
MAX_BEST_CREATURES    = MAX_CREATURES * 2   # hall-of-fame capacity
EVOLUTION_CYCLE_TICKS = 30 * 5              # ticks between evolution spawns

# ─── Brain ────────────────────────────────────────────────────────────────────
NUM_SENSOR_RAYS = 12   # distance rays, evenly spaced around the creature
MEMORY_SIZE     = 12   # outputs fed back as inputs on the next step

# ─── Sensing ──────────────────────────────────────────────────────────────────
NO_HIT_DISTANCE = sys.float_info.max   # ray left the surface without a hit

# ─── Display ──────────────────────────────────────────────────────────────────
BG_COLOR       = (0xF4, 0xF4, 0xF4)
SOLID_COLOR    = (0x00, 0x00, 0x00)
MARKER_COLOR   = (0xFF, 0xFF, 0xFF)
MARKER_RADIUS  = 2      # forward-direction marker drawn on each creature
MARKER_OFFSET  = 3      # distance of the marker from the creature centre

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR           = "output"   # directory for saved frames and charts
SNAPSHOT_INTERVAL  = 500        # save a frame snapshot every N ticks
PRINT_INTERVAL     = 100        # print a stats line every N ticks
DIVERSITY_SAMPLE   = 20         # creatures sampled for the diversity stat
LOG_CSV            = True       # write per-tick CSV log
TICK_INTERVAL_S    = 0.03       # server frame pacing (~30 fps)
