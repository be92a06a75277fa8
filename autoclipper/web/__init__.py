"""Flask application factory for the AutoClipper web API."""

import tempfile
from pathlib import Path

from flask import Flask, jsonify

from autoclipper.llm import Completer
from autoclipper.settings import Settings, load_settings


def create_app(
    work_dir: Path | None = None,
    settings: Settings | None = None,
    completer: Completer | None = None,
) -> Flask:
    app = Flask(__name__)
    settings = settings or load_settings()
    work_dir = Path(work_dir or tempfile.mkdtemp(prefix="autoclipper_"))

    app.config["SETTINGS"] = settings
    app.config["WORK_DIR"] = work_dir
    app.config["CLIPS_DIR"] = Path(settings.server.clips_dir or work_dir / "clips").resolve()
    app.config["COMPLETER"] = completer
    app.config["MAX_CONTENT_LENGTH"] = settings.server.max_upload_bytes

    from autoclipper.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app
