from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
from worker.app.routers import status as status_router
from worker.app.routers import articles as articles_router
from worker.app.config import settings as C

app = FastAPI(title="clubblog-worker")

origins = [origin.strip() for origin in C.CORS_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(status_router.router)
app.include_router(articles_router.router)


@app.on_event("startup")
async def _startup_log():
    logging.info(
        f"[worker] GITHUB_REPO={C.GITHUB_OWNER}/{C.GITHUB_REPO}  IMAGES_RAW_BASE={C.images_raw_base}"
    )
    if not C.GITHUB_TOKEN.strip():
        logging.warning(
            "[worker] GITHUB_TOKEN not set; submissions with inline images will fail"
        )
    logging.info("[worker] Routes: /health /status /articles")


@app.get("/")
async def root():
    return {"message": "clubblog Worker Service"}


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT_WORKER", "8090"))
    uvicorn.run(app, host="0.0.0.0", port=port)
