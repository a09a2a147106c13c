from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields

from flask import Flask, jsonify, request

from .config import SETTINGS, configure_logging
from .errors import InvalidConfiguration, SourceFetchError
from .infrastructure.network import FETCHER
from .infrastructure.responses import send_png
from .processing.buffer import PixelBuffer, decode_image, downsample
from .processing.palette import Palette, extract_palette, palette_strip, preset_palette
from .processing.pipeline import render_edge_view, run_pipeline
from .processing.types import PipelineConfig

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def _load_source() -> PixelBuffer:
    upload = request.files.get("image")
    if upload is not None:
        source = decode_image(upload.read())
    else:
        source_url = request.values.get("source_url")
        if not source_url:
            raise InvalidConfiguration("Provide an 'image' upload or a source_url")
        source = FETCHER.fetch_source(source_url)

    dot_width = request.values.get("dot_width")
    if dot_width:
        try:
            width = int(dot_width)
        except ValueError:
            raise InvalidConfiguration(f"Expected int for dot_width, got {dot_width!r}") from None
        source = downsample(source, width, request.values.get("downsample", "nearest"))
    return source


def _load_palette() -> Palette:
    upload = request.files.get("palette")
    if upload is not None:
        return extract_palette(decode_image(upload.read()))
    preset = request.values.get("preset")
    if preset:
        return preset_palette(preset)
    palette_url = request.values.get("palette_url")
    if palette_url:
        return extract_palette(FETCHER.fetch_source(palette_url))
    raise InvalidConfiguration("Provide a 'palette' upload, a palette_url or a preset")


def _load_config() -> PipelineConfig:
    raw = request.values.get("config")
    if raw:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidConfiguration(f"config is not valid JSON: {exc}") from exc
    else:
        payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        raise InvalidConfiguration("config must be a JSON object")
    return PipelineConfig.from_mapping(payload)


def _palette_response(palette: Palette):
    if (request.args.get("format") or "json").lower() == "png":
        return send_png(palette_strip(palette), truncated=palette.truncated)
    return jsonify(colors=palette.to_json(), count=len(palette), truncated=palette.truncated)


def create_app() -> Flask:
    configure_logging()
    app = Flask(__name__)

    @app.errorhandler(InvalidConfiguration)
    def invalid_configuration(exc: InvalidConfiguration):
        return jsonify(error=str(exc)), 400

    @app.errorhandler(SourceFetchError)
    def source_error(exc: SourceFetchError):
        logger.error("Source fetch failed: %s", exc)
        return jsonify(error=str(exc)), 502

    @app.route("/reduce", methods=["POST"])
    def reduce():
        source = _load_source()
        palette = _load_palette()
        result = run_pipeline(source, palette, _load_config())
        return send_png(result.image, truncated=palette.truncated)

    @app.route("/debug/edges", methods=["POST"])
    def debug_edges():
        return send_png(render_edge_view(_load_source(), _load_config()))

    @app.route("/palette", methods=["POST"])
    def palette_from_image():
        return _palette_response(_load_palette())

    @app.route("/palette/<preset>")
    def palette_preset(preset: str):
        return _palette_response(preset_palette(preset))

    @app.route("/health")
    def health():
        return jsonify(ok=True, version=APP_VERSION)

    @app.route("/settings", methods=["GET", "PATCH"])
    def settings_view():
        if request.method == "GET":
            return jsonify(asdict(SETTINGS))

        payload = request.get_json(silent=True) or {}
        errors: dict[str, str] = {}
        applied: dict[str, object] = {}

        for field in fields(SETTINGS):
            if field.name not in payload:
                continue

            raw_value = payload[field.name]
            try:
                if field.type in (int, "int"):
                    coerced = int(raw_value)
                elif field.type in (float, "float"):
                    coerced = float(raw_value)
                elif field.name == "log_level":
                    coerced = str(raw_value).upper()
                    logging.getLogger().setLevel(coerced)
                else:
                    coerced = str(raw_value)
            except (TypeError, ValueError):
                errors[field.name] = f"Expected {getattr(field.type, '__name__', field.type)}"
                continue

            setattr(SETTINGS, field.name, coerced)
            applied[field.name] = coerced

        status = 400 if errors else 200
        return (
            jsonify(updated=applied, errors=errors, settings=asdict(SETTINGS)),
            status,
        )

    @app.route("/")
    def index():
        return jsonify(
            version=APP_VERSION,
            endpoints={
                "/reduce": "POST image + palette (or preset) + config -> reduced PNG",
                "/debug/edges": "POST image + config with an edge section -> edge visualization PNG",
                "/palette": "POST palette image -> colors (format=png for a swatch strip)",
                "/palette/<preset>": "rgb232, rgb322, rgb343 or rgb433",
                "/settings": "GET or PATCH runtime settings",
                "/health": "Liveness check",
            },
        )

    return app


# Expose a module-level Flask application for WSGI servers that import ``palette_reducer.app:app``.
app = create_app()
application = app
