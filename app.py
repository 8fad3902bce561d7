import os

from canteen import create_app

app = create_app()
celery = app.extensions['celery']


if __name__ == '__main__':
    port = int(os.getenv("PORT", 5000))  # Default to 5000 if PORT is not set
    app.run(host="0.0.0.0", port=port, debug=app.config.get('DEBUG', False))
