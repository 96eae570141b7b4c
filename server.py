"""
Arena Evolution Server  –  Flask + Server-Sent Events
=====================================================

Drives the simulation in a background thread, one tick per frame.

Endpoints:
  POST /start        Start (or restart) the simulation with a JSON config body
  POST /stop         Stop the running simulation
  POST /step         Run exactly one tick (simulation must not be running)
  POST /spawn        Spawn a random creature now (the "tap to spawn" trigger)
  GET  /frame.png    Current display frame
  GET  /stream       SSE stream – browser subscribes here for live data
  GET  /status       Current sim state as JSON

Run:
  python server.py
  # → http://localhost:5000
"""

import io
import json
import logging
import queue
import threading

from flask import Flask, Response, request, jsonify

from simulation import Simulation
from visualizer import save_frame_png
from config import (
    ARENA_WIDTH, ARENA_HEIGHT, BORDER_WIDTH, CREATURE_RADIUS,
    MIN_CREATURES, NUM_OBSTACLES, EVOLUTION_CYCLE_TICKS, TICK_INTERVAL_S,
)

log = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global simulation state. _sim_lock serializes ticks, spawns and frame reads
# so readers only ever see the state between two ticks.
_sim:         Simulation | None = None
_sim_lock     = threading.Lock()
_sim_thread:  threading.Thread | None = None
_stop_event   = threading.Event()
_tick_queue   = queue.Queue(maxsize=200)   # holds dicts to stream
_sim_status   = {
    "running": False,
    "tick":    0,
    "cfg":     {},
}
_status_lock  = threading.Lock()


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow any origin to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


# ──────────────────────────────────────────────────────────────────────────────
# Simulation setup
# ──────────────────────────────────────────────────────────────────────────────

def _build_cfg(data: dict) -> dict:
    """Merge request JSON with defaults. Raises ValueError on bad values."""
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    min_creatures = int(data.get("minCreatures", MIN_CREATURES))
    cfg = {
        "width":                 int(data.get("width",       ARENA_WIDTH)),
        "height":                int(data.get("height",      ARENA_HEIGHT)),
        "border_width":          int(data.get("borderWidth", BORDER_WIDTH)),
        "min_creatures":         min_creatures,
        "max_creatures":         2 * min_creatures,
        "max_best_creatures":    4 * min_creatures,
        "num_obstacles":         int(data.get("obstacles",   NUM_OBSTACLES)),
        "evolution_cycle_ticks": int(data.get("cycleTicks",  EVOLUTION_CYCLE_TICKS)),
        "seed":                  data.get("seed"),
        "tick_interval":         float(data.get("tickInterval", TICK_INTERVAL_S)),
    }
    if cfg["seed"] is not None:
        cfg["seed"] = int(cfg["seed"])
    if cfg["width"] <= CREATURE_RADIUS or cfg["height"] <= CREATURE_RADIUS:
        raise ValueError("arena too small")
    if min_creatures < 1 or cfg["evolution_cycle_ticks"] < 1:
        raise ValueError("minCreatures and cycleTicks must be positive")
    return cfg


def _new_simulation(cfg: dict) -> Simulation:
    return Simulation(
        width                 = cfg["width"],
        height                = cfg["height"],
        border_width          = cfg["border_width"],
        min_creatures         = cfg["min_creatures"],
        max_creatures         = cfg["max_creatures"],
        max_best_creatures    = cfg["max_best_creatures"],
        num_obstacles         = cfg["num_obstacles"],
        evolution_cycle_ticks = cfg["evolution_cycle_ticks"],
        seed                  = cfg["seed"],
    )


def _publish(sim: Simulation, stats: dict, out_q: queue.Queue):
    """Push one tick's payload; drop the oldest frame if the queue is full."""
    payload = {
        "type":        "tick",
        "tick":        stats["tick"],
        "population":  stats["population"],
        "deaths":      stats["deaths"],
        "bestScore":   stats["best_score"],
        "meanScore":   round(stats["mean_score"], 2),
        "hallOfFame":  stats["hall_of_fame"],
        "diversity":   round(stats["diversity"], 4),
        "obstacles":   [
            {"x": o.x, "y": o.y, "angle": o.angle, "length": o.length}
            for o in sim.obstacles
        ],
        "snapshot":    sim.snapshot(),
    }
    with _status_lock:
        _sim_status["tick"] = stats["tick"]
    _enqueue(out_q, payload)


def _enqueue(out_q: queue.Queue, payload: dict):
    """Put without blocking; drop the oldest payload if the queue is full."""
    while True:
        try:
            out_q.put_nowait(payload)
            return
        except queue.Full:
            try:
                out_q.get_nowait()
            except queue.Empty:
                pass


# ──────────────────────────────────────────────────────────────────────────────
# Simulation thread
# ──────────────────────────────────────────────────────────────────────────────

def _sim_worker(sim: Simulation, tick_interval: float,
                stop_evt: threading.Event, out_q: queue.Queue):
    """
    Tick the simulation until stopped, pacing ticks like display frames.
    Only the current worker (the one owning _stop_event) clears the running
    flag on exit, so a replaced worker cannot mark its successor stopped.
    """
    try:
        while not stop_evt.is_set():
            with _sim_lock:
                stats = sim.do_tick()
                _publish(sim, stats, out_q)
            if stop_evt.wait(tick_interval):
                break
    except Exception:
        log.exception("simulation thread crashed")
        raise
    finally:
        with _status_lock:
            if stop_evt is _stop_event:
                _sim_status["running"] = False
        _enqueue(out_q, {"type": "done", "tick": sim.tick_counter})


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _sim, _sim_thread, _stop_event, _tick_queue

    try:
        cfg = _build_cfg(request.get_json(force=True, silent=True) or {})
    except (TypeError, ValueError) as exc:
        return jsonify({"status": "error", "error": str(exc)}), 400

    # Stop any running sim
    _stop_event.set()
    if _sim_thread and _sim_thread.is_alive():
        _sim_thread.join(timeout=3)

    # Reset
    _stop_event = threading.Event()
    _tick_queue = queue.Queue(maxsize=200)
    with _sim_lock:
        _sim = _new_simulation(cfg)
    with _status_lock:
        _sim_status["tick"]    = 0
        _sim_status["cfg"]     = cfg
        _sim_status["running"] = True

    _sim_thread = threading.Thread(
        target=_sim_worker,
        args=(_sim, cfg["tick_interval"], _stop_event, _tick_queue),
        daemon=True,
    )
    _sim_thread.start()
    return jsonify({"status": "started", "cfg": cfg})


@app.route("/stop", methods=["POST"])
def stop():
    _stop_event.set()
    if _sim_thread and _sim_thread.is_alive():
        _sim_thread.join(timeout=3)
    return jsonify({"status": "stopped"})


def _ensure_simulation() -> Simulation:
    global _sim
    with _sim_lock:
        if _sim is None:
            _sim = _new_simulation(_build_cfg({}))
        return _sim


@app.route("/step", methods=["POST"])
def step_one():
    """Run exactly one tick (convenience for manual stepping)."""
    with _status_lock:
        running = _sim_status["running"]
    if running:
        return jsonify({"status": "error", "error": "simulation is running"}), 409
    sim = _ensure_simulation()
    with _sim_lock:
        stats = sim.do_tick()
        _publish(sim, stats, _tick_queue)
    return jsonify({"status": "ok", "stats": stats})


@app.route("/spawn", methods=["POST"])
def spawn():
    """Spawn one random creature, exactly as a screen tap would."""
    sim = _ensure_simulation()
    with _sim_lock:
        sim.spawn_random_creature()
        population = len(sim.creatures)
    return jsonify({"status": "ok", "population": population})


@app.route("/frame.png", methods=["GET"])
def frame_png():
    sim = _ensure_simulation()
    buf = io.BytesIO()
    with _sim_lock:
        frame = sim.frame.copy()
    save_frame_png(frame, buf)
    return Response(buf.getvalue(), mimetype="image/png")


@app.route("/status", methods=["GET"])
def status():
    with _status_lock:
        data = dict(_sim_status)
    if _sim is not None:
        with _sim_lock:
            data["population"]  = len(_sim.creatures)
            data["obstacles"]   = len(_sim.obstacles)
            data["hallOfFame"]  = len(_sim.hall_of_fame)
            data["bestScore"]   = _sim.hall_of_fame.best_score
    return jsonify(data)


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – browser subscribes and receives each tick as an event."""

    def event_gen():
        # Send a hello so the browser knows it's connected
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = _tick_queue.get(timeout=1)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") == "done":
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("=" * 50)
    print("  Arena Evolution Server  →  http://localhost:5000")
    print("  SSE stream              →  http://localhost:5000/stream")
    print("  Current frame           →  http://localhost:5000/frame.png")
    print("=" * 50)
    app.run(host="0.0.0.0", port=5000, threaded=True, debug=False)
