import os

from . import create_app


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("FLASK_RUN_PORT", 3000))
    app.run(debug=app.config.get("DEBUG", False), port=port)
