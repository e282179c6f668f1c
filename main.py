"""
Travelog – main application entry point

* Flask app serving the travel planner JSON API.
* All external clients (model providers, geocoders, database, Twilio) are
  built once by ``create_app`` from the environment.
"""

import os
import logging

from dotenv import load_dotenv

# --------------------------------------------------------------------------- #
# Environment and logging
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

if "FLASK_SECRET_KEY" not in os.environ:
    logger.warning("FLASK_SECRET_KEY is not set; using a per-process key")

# --------------------------------------------------------------------------- #
# Application
# --------------------------------------------------------------------------- #
from travelog.api.config import get_port  # noqa: E402
from travelog.app import create_app  # noqa: E402

app = create_app()


@app.route("/debug")
def debug():
    """Simple JSON endpoint listing the mounted API groups."""
    return {
        "status": "ok",
        "endpoints": {
            "ai": "/api/ai",
            "planner": "/api/<provider>",
            "trips": "/api/trips",
            "auth": "/api/auth",
            "assistant": "/api/assistant/chat",
        },
    }


# --------------------------------------------------------------------------- #
# Local development runner ( `python main.py` )
# --------------------------------------------------------------------------- #
if __name__ == "__main__":
    port = get_port()
    logger.info("Starting travelog on http://localhost:%d", port)
    app.run(host="0.0.0.0", port=port, debug=False)

__all__ = ["app"]
