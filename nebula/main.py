from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from nebula.core.config import settings
from nebula.routers import logs, subscriptions, webhook_channels
from nebula.routers import settings as settings_router

OPENAPI_TAGS = [
    {"name": "Subscriptions", "description": "Track recurring subscriptions and their due dates."},
    {"name": "Webhooks", "description": "Manage webhook channels and send test notifications."},
    {"name": "Settings", "description": "Timezone, base currency and exchange rates."},
    {"name": "Logs", "description": "Query and clear operational logs."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Subscription tracking API. Reminders are sent to webhook channels "
        "shortly before each renewal date."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(subscriptions.router, prefix="/v1/subscriptions", tags=["Subscriptions"])
app.include_router(
    webhook_channels.router,
    prefix="/v1/webhook_channels",
    tags=["Webhooks"],
)
app.include_router(settings_router.router, prefix="/v1/settings", tags=["Settings"])
app.include_router(logs.router, prefix="/v1/logs", tags=["Logs"])


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
