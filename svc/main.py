from __future__ import annotations
from dotenv import load_dotenv
load_dotenv()  # Load .env file before importing skreader modules

import logging
import uvicorn
from skreader.config import HOST, PORT
from skreader.server import create_app

logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s: %(name)s: %(message)s'
)
logging.getLogger("skreader").setLevel(logging.INFO)

app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
