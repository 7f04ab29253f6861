"""
Freshdesk Ticket Proxy - FastAPI Backend
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from freshdesk_proxy import __version__
from freshdesk_proxy.config import get_settings
from freshdesk_proxy.error_handlers import register_exception_handlers
from freshdesk_proxy.routes import tickets, health
from freshdesk_proxy.middleware.user_context_middleware import UserContextMiddleware
from freshdesk_proxy.middleware.logging_middleware import LoggingMiddleware

settings = get_settings()

app = FastAPI(
    title="Freshdesk Ticket Proxy",
    description="Requester-facing ticket API backed by Freshdesk",
    version=__version__
)

# Middleware runs bottom-up: last added is outermost
# 1. Requester context (email/id from trusted headers)
app.add_middleware(UserContextMiddleware)

# 2. Logging (request/response, including rejected requests)
app.add_middleware(LoggingMiddleware)

# 3. CORS (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(tickets.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "Freshdesk Ticket Proxy API", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
