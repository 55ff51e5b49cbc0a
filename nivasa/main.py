# nivasa/main.py
# Run with `uvicorn nivasa.main:app` or `python -m nivasa.main`.
import os

import uvicorn

from nivasa.app import app  # noqa: F401


if __name__ == "__main__":
    uvicorn.run(
        "nivasa.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
    )
