import logging

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from kyc_ocr.api.routes import router
from kyc_ocr.core.config import get_settings

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title="KYC OCR Review API", version="0.1.0")  # Main ASGI app

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}  # Basic liveness


app.include_router(router)


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    # Browsers probe this on every page load of the capture flow.
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
