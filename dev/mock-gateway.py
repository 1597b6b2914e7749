#!/usr/bin/env python3
"""Mock control-system REST gateway for local development (serves dev/plant.yaml)."""

import os
import sys
from pathlib import Path

from flask import Flask, jsonify, request

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from bridge.providers.static_provider import load_static_manager  # noqa: E402

app = Flask(__name__)
plant = load_static_manager(os.getenv("BRIDGE_STATIC_FILE", str(Path(__file__).with_name("plant.yaml"))))


def ok(data):
    return jsonify({"status": "success", "data": data})


def fail(error: str, code: int = 404):
    return jsonify({"status": "error", "error": error}), code


@app.route("/api/dp/get", methods=["POST"])
def dp_get():
    """Config values, or `<dpe>:_online.._value` / `<dpe>:_original.._stime` reads."""
    dpes = (request.get_json(silent=True) or {}).get("dpes") or []
    out = []
    try:
        for dpe in dpes:
            name, _, attr = dpe.partition(":_")
            if not attr:
                out.extend(plant.get_values([dpe]))
                continue
            current = plant.get_value(name)
            out.append(current["timestamp"] if attr.endswith("_stime") else current["value"])
    except KeyError as e:
        return fail(str(e))
    return ok(out)


@app.route("/api/dp/set", methods=["POST"])
def dp_set():
    body = request.get_json(silent=True) or {}
    try:
        return ok(plant.set_value(body.get("dpe"), body.get("value")))
    except KeyError as e:
        return fail(str(e))


@app.route("/api/dp/types", methods=["GET"])
def dp_types():
    return ok(plant.list_types(request.args.get("pattern")))


@app.route("/api/dp/names", methods=["GET"])
def dp_names():
    return ok(plant.list_datapoints(request.args.get("pattern", "*"), request.args.get("type")))


@app.route("/api/dp/<attr>", methods=["GET"])
def dp_attr(attr):
    getters = {"type-name": plant.get_type_name, "description": plant.get_description, "unit": plant.get_unit}
    if attr not in getters:
        return fail(f"unknown attribute: {attr}")
    try:
        return ok(getters[attr](request.args.get("dp") or request.args.get("dpe")))
    except KeyError as e:
        return fail(str(e))


@app.route("/api/cns/<op>", methods=["GET"])
def cns(op):
    try:
        if op == "trees":
            return ok(plant.list_trees(request.args.get("view", "")))
        node = request.args.get("node", "")
        ops = {
            "root": plant.get_root,
            "display-name": plant.get_display_name,
            "id": plant.get_id,
            "children": plant.get_children,
        }
        if op not in ops:
            return fail(f"unknown operation: {op}")
        return ok(ops[op](node))
    except KeyError as e:
        return fail(str(e))


@app.route("/healthz")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    print("Mock control gateway starting on http://0.0.0.0:8443/api", file=sys.stderr)
    app.run(host="0.0.0.0", port=8443, debug=False)
