import os
from mangum import Mangum

from app.main import app

# Read environment variables using os.getenv for production safety
DATABASE_URL = os.getenv("DATABASE_URL")


@app.get("/health")
def health():
    return {
        "message": "Work order engine running on Vercel",
        "database_url_present": bool(DATABASE_URL),
    }


# Mangum adapts FastAPI (ASGI) to serverless environments
handler = Mangum(app)
