import uvicorn
from coursehub_backend.settings import settings
from coursehub_backend.database import create_tables

if __name__ == "__main__":

    if settings.DEBUG_MODE != "production":
        create_tables()

    uvicorn.run("coursehub_backend.server:app", host="0.0.0.0", port=8000, log_level="debug", reload=True, workers=1)
