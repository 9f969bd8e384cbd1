import argparse
import logging

from clearview.app import create_app
from clearview.config import Settings


def main():
    parser = argparse.ArgumentParser(description="Remove watermarks from images and compare the result.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8050)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if settings.api_key is None:
        logging.getLogger("clearview").warning("No GEMINI_API_KEY set, processing requests will fail.")
    app = create_app(settings)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
