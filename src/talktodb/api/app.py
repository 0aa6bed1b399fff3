from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from talktodb.api.dependencies import HandlerDep, lifespan
from talktodb.config import settings
from talktodb.dto import AskRequest, AskResponse, HealthCheckResponse, SchemaResponse

app = FastAPI(
    title="TalkToDB API",
    description="Natural-language questions over a SQL table, cached by semantic similarity",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "TalkToDB API",
        "version": "0.1.0",
        "description": "Natural-language questions over a SQL table, cached by semantic similarity",
        "endpoints": {
            "ask": "/ask",
            "schema": "/schema",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.post("/ask", response_model=AskResponse)
async def ask(request: AskRequest, handler: HandlerDep) -> AskResponse:
    """Answer a natural-language question about the table."""
    return await handler.ask(request)


@app.get("/schema", response_model=SchemaResponse)
async def get_schema(handler: HandlerDep) -> SchemaResponse:
    """Get the columns of the queried table."""
    return await handler.get_schema()


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "talktodb.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
