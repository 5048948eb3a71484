import json
import logging
import time
from typing import Optional

import cv2
import numpy as np
import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import ValidationError

from .analyzer import SmileAnalyzer
from .config import load_config, setup_logging
from .overlay import draw_overlay, parse_layers, render_svg
from .schemas import ProportionRequest, ProportionResponse

config = load_config()
setup_logging(config["log_level"])
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Smile Proportion API",
    description="Midline, golden ratio and smile arc overlays from tooth bounds",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config["cors_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

analyzer = SmileAnalyzer.from_config(config)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp"]


@app.get("/")
def health_check():
    return {"status": "ok", "message": "Smile Proportion API is running."}


def _layers_or_400(layers: Optional[str]):
    try:
        return parse_layers(layers.split(",") if layers is not None else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/proportions", response_model=ProportionResponse)
def compute_proportions(request: ProportionRequest):
    start_time = time.time()

    try:
        result = analyzer.analyze(request.bounds, request.analysis)
    except Exception as e:
        logger.exception("Proportion analysis failed")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")

    tooth_count = len(result["bounds"])
    dropped = len(request.bounds) - tooth_count
    if dropped:
        logger.info("Dropped %d invalid tooth boxes", dropped)

    return ProportionResponse(
        lines=analyzer.serialize(result["lines"]),
        summary=result["summary"],
        meta={
            "process_time": round(time.time() - start_time, 3),
            "tooth_count": tooth_count,
            "dropped_count": dropped,
        },
    )


@app.post("/proportions/svg")
def proportions_svg(
    request: ProportionRequest,
    width: float = Query(1000, gt=0),
    height: float = Query(1000, gt=0),
    layers: Optional[str] = Query(None, description="Comma separated layer names"),
):
    selected = _layers_or_400(layers)

    try:
        result = analyzer.analyze(request.bounds, request.analysis)
        svg = render_svg(
            result["lines"], width, height, selected, tolerance=analyzer.tolerance
        )
    except Exception as e:
        logger.exception("SVG rendering failed")
        raise HTTPException(status_code=500, detail=f"SVG rendering failed: {str(e)}")

    return Response(content=svg, media_type="image/svg+xml")


@app.post("/proportions/overlay")
async def proportions_overlay(
    file: UploadFile = File(...),
    bounds: str = Form(..., description="JSON list of tooth bounds"),
    layers: Optional[str] = Form(None),
):
    # 1. Validation
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400, detail="Invalid file type. Only JPEG/PNG/WEBP allowed."
        )
    selected = _layers_or_400(layers)

    try:
        request = ProportionRequest.model_validate({"bounds": json.loads(bounds)})
    except (json.JSONDecodeError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid bounds: {e}")

    # 2. In-memory Read
    contents = await file.read()
    image = cv2.imdecode(np.frombuffer(contents, np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise HTTPException(status_code=400, detail="Failed to decode image data.")

    # 3. Analyze and draw
    try:
        result = analyzer.analyze(request.bounds)
        annotated = draw_overlay(
            image, result["lines"], selected, tolerance=analyzer.tolerance
        )
        ok, encoded = cv2.imencode(".png", annotated)
    except Exception as e:
        logger.exception("Overlay rendering failed")
        raise HTTPException(status_code=500, detail=f"Overlay failed: {str(e)}")

    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode overlay image.")

    logger.info(
        "Overlay rendered for %d teeth on %dx%d image",
        len(result["bounds"]),
        image.shape[1],
        image.shape[0],
    )
    return Response(content=encoded.tobytes(), media_type="image/png")


def run():
    logger.info("Starting API server on %s:%s", config["host"], config["port"])
    uvicorn.run(app, host=config["host"], port=config["port"])


if __name__ == "__main__":
    run()
