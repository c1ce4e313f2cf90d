import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from churchops.core.config import settings
from churchops.core.errors import install_error_handlers
from churchops.routers import assignments, auth, events, invitations, me, positions

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="ChurchOps API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_error_handlers(app)

app.include_router(auth.router)
app.include_router(me.router)
app.include_router(events.router)
app.include_router(positions.router)
app.include_router(assignments.router)
app.include_router(invitations.router)


@app.get("/health")
def health():
    return {"status": "ok"}
