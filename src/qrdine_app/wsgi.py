"""WSGI entry point: ``gunicorn qrdine_app.wsgi:app``."""

import os

from qrdine_app.app import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config.get("DEBUG", False))
