"""
Entry point for Flask.

Usage (from project root):

    # On Windows (PowerShell):
    $env:FLASK_APP="run.py"
    $env:FLASK_DEBUG="1"
    flask run

or:

    flask --app run.py --debug run

First run:

    flask --app run.py init-db
    flask --app run.py seed-demo

"""

from negopro import create_app

# WSGI application object for Flask to run. When you run `flask run`, Flask looks for this `app` variable.
app = create_app()

if __name__ == "__main__":
    # For direct `python run.py` usage (dev only) - use `flask run` instead.
    app.run(debug=True)
