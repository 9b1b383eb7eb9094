import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog.config import CORS_ORIGINS
from routers import ai, products

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Product Catalog API")

# Allow the catalog frontend to talk to the backend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(products.router)
app.include_router(ai.router)

@app.get("/")
def read_root():
    return {"status": "ok", "message": "Backend is running. Visit /docs for Swagger UI."}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
