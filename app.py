#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import datetime
import io
import logging
import os
from pathlib import Path
from typing import Any, Dict

from flask import Flask, jsonify, render_template, request, send_file

from checker import check_domain, check_domains, read_domains, to_csv_bytes
from constants import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_MAX_CONCURRENT, DOMAINS_FILE
from exceptions import CapacityExceededError, InvalidInputError
from logging_config import configure_logging
from models import CheckResult, ProbeConfig, env_float, env_int
from normalizer import normalize
from resources import ResourcePool

logger = logging.getLogger(__name__)

app = Flask(__name__)


# ----------------- Config -----------------
app.config.update(
    PROBE_CONFIG=ProbeConfig.from_env(),
    CHECK_POOL=ResourcePool(
        capacity=max(1, env_int("SITECHECK_MAX_CONCURRENT", DEFAULT_MAX_CONCURRENT)),
        acquire_timeout=env_float("SITECHECK_ACQUIRE_TIMEOUT", DEFAULT_ACQUIRE_TIMEOUT),
    ),
    DOMAINS_FILE=Path(os.getenv("SITECHECK_DOMAINS_FILE", str(DOMAINS_FILE))),
    LAST_RESULTS=[],
)


def to_api_payload(result: CheckResult) -> Dict[str, Any]:
    return {
        "url": result["url"],
        "isUp": result["is_up"],
        "reason": result["reason"],
        "code": result["http_status"],
        "checkedAt": result["checked_at"],
    }


def _requested_domain() -> Any:
    raw = request.args.get("domain") or request.args.get("url")
    if raw is None and request.method == "POST":
        payload = request.get_json(silent=True) or {}
        if isinstance(payload, dict):
            raw = payload.get("url") or payload.get("domain")
    return raw


@app.route("/")
def index():
    return render_template("index.html", timeout=app.config["PROBE_CONFIG"].timeout)


@app.route("/api/check", methods=["GET", "POST"])
def api_check():
    raw = _requested_domain()
    if not raw or not isinstance(raw, str):
        return jsonify({"error": "No domain provided"}), 400

    try:
        target = normalize(raw)
    except InvalidInputError as exc:
        return jsonify(exc.to_dict()), exc.status_code

    pool: ResourcePool = app.config["CHECK_POOL"]
    try:
        with pool.slot():
            result = check_domain(target, app.config["PROBE_CONFIG"])
    except CapacityExceededError as exc:
        body = exc.to_dict()
        body.update({"url": target, "isUp": False})
        return jsonify(body), exc.status_code
    except Exception:  # pylint: disable=broad-except
        logger.exception("Check for %s crashed", target)
        return jsonify({"url": target, "isUp": False, "error": "internal error"}), 500
    return jsonify(to_api_payload(result))


@app.route("/scan", methods=["POST"])
def scan():
    domains = read_domains(app.config["DOMAINS_FILE"])
    results = check_domains(domains, app.config["PROBE_CONFIG"])
    app.config["LAST_RESULTS"] = list(results)
    return jsonify({"results": results})


@app.route("/download_csv", methods=["GET"])
def download_csv():
    csv_bytes = to_csv_bytes(app.config["LAST_RESULTS"] or [])
    ts = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%d_%H%M%S")
    mem = io.BytesIO(csv_bytes)
    mem.seek(0)
    return send_file(
        mem,
        mimetype="text/csv; charset=utf-8",
        as_attachment=True,
        download_name=f"results_{ts}.csv",
    )


# ---------- CLI entry ----------
if __name__ == "__main__":
    configure_logging(os.getenv("SITECHECK_LOG_LEVEL", "INFO"))
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
