"""
AgriSense - Smart agriculture advisory API.
FastAPI backend: climate insights, crop recommendations, rule-based disease lookup,
farming assistant chat.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union

from fastapi import FastAPI, Body, UploadFile, File, Form, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from logging_config import setup_logging
from crop_database import CROP_DATABASE, InvalidInput, recommend_crops, find_crop
from climate import CLIMATE_ZONES, WeatherServiceError, predict_climate
from disease_database import detect_disease, get_disease, list_diseases
from leaf_image import analyze_leaf_image
from chatbot import ChatAssistant, AssistantUnavailable

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="AgriSense API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Conversation memory is owned by the assistant (bounded, expiring)
assistant = ChatAssistant.from_config()


# --- Request models ---
class ClimatePredictRequest(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    area: Optional[str] = None


class ChatQueryRequest(BaseModel):
    message: Optional[str] = None
    user_id: Optional[Union[str, int]] = None
    context: Optional[Dict[str, Any]] = None


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


# --- Error mapping ---
@app.exception_handler(InvalidInput)
def invalid_input_handler(request: Request, exc: InvalidInput):
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return _error(400, f"Invalid value for {field}: {first.get('msg', 'invalid input')}" if field else "Invalid request")


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error(404, "Route not found")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, str(exc) or "Internal Server Error")


# --- Health ---
@app.get("/api/health")
def health():
    return {
        "status": "OK",
        "message": "Smart Agriculture API is running",
        "time": datetime.now(timezone.utc).isoformat(),
    }


# --- Climate ---
@app.post("/api/climate/predict")
def climate_predict(req: ClimatePredictRequest):
    """Current weather, climate zone and farming season for a coordinate."""
    try:
        return predict_climate(req.latitude, req.longitude, area=req.area)
    except WeatherServiceError as e:
        logger.error("Climate prediction error: %s", e)
        return _error(502, "Failed to predict climate", error=str(e))


@app.get("/api/climate/zones")
def climate_zones():
    return {"success": True, "zones": CLIMATE_ZONES}


# --- Crops ---
@app.post("/api/crops/recommend")
def crops_recommend(payload: Dict[str, Any] = Body(...)):
    """Top crops for temperature / humidity (required) and rainfall / season / soil_type (optional)."""
    result = recommend_crops(CROP_DATABASE, payload, top_n=Config.TOP_N_CROPS)
    logger.info(
        "Recommended %d of %d suitable crops",
        len(result["recommendations"]), result["total_suitable_crops"],
    )
    return result


@app.get("/api/crops")
def crops_list():
    return {"success": True, "total_crops": len(CROP_DATABASE), "crops": CROP_DATABASE}


@app.get("/api/crops/{crop_name}")
def crop_detail(crop_name: str):
    crop = find_crop(CROP_DATABASE, crop_name)
    if crop is None:
        return _error(404, f"Crop '{crop_name}' not found in database")
    return {"success": True, "crop": crop}


# --- Disease ---
@app.post("/api/disease/detect")
def disease_detect(
    image: Optional[UploadFile] = File(None),
    crop_name: Optional[str] = Form(None),
):
    """Rule-based disease lookup for a crop; an uploaded leaf photo is quality-checked with OpenCV."""
    image_quality = None
    if image is not None:
        if not image.content_type or not image.content_type.startswith("image/"):
            return _error(400, "Invalid image: file must be an image")
        try:
            image_quality = analyze_leaf_image(image.file.read())
        except ValueError as e:
            return _error(400, str(e))

    logger.info("Disease detection for crop: %s", crop_name)
    return detect_disease(crop_name, image_quality=image_quality)


@app.get("/api/disease")
def disease_list():
    diseases = list_diseases()
    return {"success": True, "total_diseases": len(diseases), "diseases": diseases}


@app.get("/api/disease/{disease_id}")
def disease_detail(disease_id: int):
    disease = get_disease(disease_id)
    if disease is None:
        return _error(404, "Disease not found")
    return {"success": True, "disease": disease}


# --- Chatbot ---
@app.post("/api/chatbot/query")
def chatbot_query(req: ChatQueryRequest):
    user_id = str(req.user_id) if req.user_id is not None and str(req.user_id).strip() else "default"
    try:
        answer = assistant.reply(req.message, user_id=user_id, context=req.context)
    except AssistantUnavailable as e:
        return _error(
            e.status_code if 400 <= e.status_code < 600 else 503,
            "Chatbot temporarily unavailable",
            fallback_response=e.fallback_response,
            error=str(e),
        )
    return {
        "success": True,
        "response": answer,
        "conversation_id": user_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/chatbot/history/{user_id}")
def chatbot_history(user_id: str):
    return {"success": True, "history": assistant.history(user_id)}


@app.delete("/api/chatbot/history/{user_id}")
def chatbot_clear_history(user_id: str):
    assistant.clear_history(user_id)
    return {"success": True, "message": "Conversation history cleared"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
