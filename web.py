from __future__ import annotations
from app import create_app
from luxcars.config import Settings
from luxcars.logger import setup_logging


def main():
    setup_logging()
    settings = Settings.from_env()
    app = create_app({'SETTINGS': settings})
    app.run(host='0.0.0.0', port=settings.port, debug=True)


if __name__ == '__main__':
    main()
