"""WSGI entry point: ``flask --app app run`` or ``flask --app app auto-checkout``."""

from src.attendance_engine.attendance_engine.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
