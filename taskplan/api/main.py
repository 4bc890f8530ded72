"""FastAPI application entry point."""

from fastapi import FastAPI

from .routes import plan

app = FastAPI(
    title="Migration Task Planner API",
    description="API resolving migration object configurations into query plans",
    version="1.0.0",
)

# Include routers
app.include_router(plan.router, prefix="/api/plan", tags=["plan"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
