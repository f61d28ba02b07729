"""
Entry point for Flask.

Usage (from project root):

    flask --app run.py --debug run --port 8080

or:

    python run.py

"""

from aaraa_erp import create_app

# WSGI application object. `flask run` and production servers (gunicorn run:app) look for this `app` variable.
app = create_app()

if __name__ == "__main__":
    # Dev only. Binds all interfaces like the container deployment does.
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=app.config["APP_ENV"] == "development")
