import os
import logging

import uvicorn

logger = logging.getLogger("growth")

HOST = os.getenv("GROWTH_HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))


if __name__ == "__main__":
    # Single worker: chat broadcasts only reach connections held by this process
    logger.info("Serving growthtracker on %s:%d", HOST, PORT)
    uvicorn.run("growthtracker.main:app", host=HOST, port=PORT, workers=1)
