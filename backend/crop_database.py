"""
AgriSense - Crop Suitability Engine.
Filters the crop catalog by observed climate (temperature, humidity, rainfall) and
optional season / soil filters, scores every surviving crop 0-100 and returns the
top matches. Pure functions over a read-only catalog; no I/O, no shared state.
"""
import logging
import math
from typing import List, Dict, Any, Optional, NamedTuple, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5

# Score weights: temperature closeness to optimum, humidity / rainfall closeness to range midpoint
TEMP_MAX_POINTS = 40
TEMP_PENALTY_PER_DEGREE = 2
HUMIDITY_MAX_POINTS = 30
HUMIDITY_DIVISOR = 2
RAINFALL_MAX_POINTS = 30
RAINFALL_DIVISOR = 100
RAINFALL_DEFAULT_POINTS = 15  # used when no rainfall is observed


class InvalidInput(ValueError):
    """Required climate inputs are missing or not numeric."""


class ObservedConditions(NamedTuple):
    temperature: float
    humidity: float
    rainfall: Optional[float] = None
    season: Optional[str] = None
    soil_type: Optional[str] = None
    area: Optional[str] = None


# --- Crop Catalog ---
# Each crop has: name, category, season label (Kharif/Rabi/Zaid), accepted soils,
# climate requirements (temperature min/max/optimal in °C, humidity min/max in %,
# seasonal rainfall min/max in mm), duration, climate zone, description, key points.

CROP_DATABASE: List[Dict[str, Any]] = [
    # --- Cereals & Grains ---
    {
        "name": "Rice",
        "category": "Cereal",
        "season": "Kharif",
        "soil": ["Clay", "Clay Loam", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 20, "max": 37, "optimal": 28},
            "humidity": {"min": 60, "max": 95},
            "rainfall": {"min": 1000, "max": 2500},
        },
        "duration": "120-150 days",
        "climate_zone": "Tropical",
        "description": "Staple crop, thrives in hot humid conditions with standing water.",
        "key_points": ["Needs puddled fields", "Transplant 20-25 day old seedlings", "Keep 5 cm standing water"],
    },
    {
        "name": "Wheat",
        "category": "Cereal",
        "season": "Rabi",
        "soil": ["Loamy", "Clay Loam", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 10, "max": 25, "optimal": 18},
            "humidity": {"min": 30, "max": 70},
            "rainfall": {"min": 450, "max": 650},
        },
        "duration": "120-150 days",
        "climate_zone": "Temperate",
        "description": "Cool-season crop, needs well-drained soil with moderate water.",
        "key_points": ["Sow in November", "Crown root irrigation at 21 days", "Avoid late sowing heat stress"],
    },
    {
        "name": "Maize",
        "category": "Cereal",
        "season": "Kharif/Zaid",
        "soil": ["Loamy", "Sandy Loam", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 18, "max": 35, "optimal": 25},
            "humidity": {"min": 40, "max": 80},
            "rainfall": {"min": 500, "max": 1000},
        },
        "duration": "90-120 days",
        "climate_zone": "Subtropical",
        "description": "Versatile crop, grows in warm weather with good drainage.",
        "key_points": ["Sensitive to waterlogging", "Earth up at knee height", "High nitrogen demand"],
    },
    {
        "name": "Barley",
        "category": "Cereal",
        "season": "Rabi",
        "soil": ["Loamy", "Sandy Loam"],
        "climate_requirements": {
            "temperature": {"min": 5, "max": 20, "optimal": 15},
            "humidity": {"min": 25, "max": 60},
            "rainfall": {"min": 300, "max": 500},
        },
        "duration": "90-120 days",
        "climate_zone": "Temperate",
        "description": "Hardy cool-season crop, drought-tolerant.",
        "key_points": ["Tolerates saline soils", "Two irrigations usually enough"],
    },
    {
        "name": "Bajra",
        "category": "Cereal",
        "season": "Kharif",
        "soil": ["Sandy", "Sandy Loam", "Loamy"],
        "climate_requirements": {
            "temperature": {"min": 25, "max": 40, "optimal": 32},
            "humidity": {"min": 20, "max": 60},
            "rainfall": {"min": 250, "max": 600},
        },
        "duration": "60-90 days",
        "climate_zone": "Arid",
        "description": "Drought-resistant millet, ideal for arid/semi-arid regions.",
        "key_points": ["Grows on poor sandy soils", "Minimal irrigation", "Short duration"],
    },
    {
        "name": "Jowar",
        "category": "Cereal",
        "season": "Kharif/Rabi",
        "soil": ["Black", "Loamy", "Sandy Loam"],
        "climate_requirements": {
            "temperature": {"min": 25, "max": 40, "optimal": 30},
            "humidity": {"min": 20, "max": 65},
            "rainfall": {"min": 400, "max": 1000},
        },
        "duration": "90-120 days",
        "climate_zone": "Arid",
        "description": "Heat and drought tolerant sorghum, dual-purpose grain and fodder.",
        "key_points": ["Good fodder crop", "Tolerates dry spells"],
    },

    # --- Pulses & Legumes ---
    {
        "name": "Chickpea",
        "category": "Pulse",
        "season": "Rabi",
        "soil": ["Loamy", "Sandy Loam", "Black"],
        "climate_requirements": {
            "temperature": {"min": 10, "max": 30, "optimal": 22},
            "humidity": {"min": 30, "max": 60},
            "rainfall": {"min": 400, "max": 700},
        },
        "duration": "90-120 days",
        "climate_zone": "Subtropical",
        "description": "Nitrogen-fixing legume, drought-tolerant, enriches soil.",
        "key_points": ["Grown on residual moisture", "Avoid excess irrigation"],
    },
    {
        "name": "Lentil",
        "category": "Pulse",
        "season": "Rabi",
        "soil": ["Loamy", "Silt"],
        "climate_requirements": {
            "temperature": {"min": 10, "max": 28, "optimal": 20},
            "humidity": {"min": 30, "max": 60},
            "rainfall": {"min": 300, "max": 500},
        },
        "duration": "90-120 days",
        "climate_zone": "Temperate",
        "description": "Cool-season pulse, minimal water needed.",
        "key_points": ["Frost sensitive at flowering", "Seed treatment with Rhizobium"],
    },
    {
        "name": "Pigeon Pea",
        "category": "Pulse",
        "season": "Kharif",
        "soil": ["Loamy", "Black", "Red"],
        "climate_requirements": {
            "temperature": {"min": 20, "max": 38, "optimal": 28},
            "humidity": {"min": 40, "max": 80},
            "rainfall": {"min": 600, "max": 1000},
        },
        "duration": "150-270 days",
        "climate_zone": "Subtropical",
        "description": "Long-duration pulse, semi-arid tolerant.",
        "key_points": ["Deep root system", "Good for intercropping with cereals"],
    },
    {
        "name": "Moong",
        "category": "Pulse",
        "season": "Kharif/Zaid",
        "soil": ["Loamy", "Sandy Loam"],
        "climate_requirements": {
            "temperature": {"min": 25, "max": 38, "optimal": 30},
            "humidity": {"min": 40, "max": 80},
            "rainfall": {"min": 400, "max": 800},
        },
        "duration": "60-75 days",
        "climate_zone": "Tropical",
        "description": "Short-duration pulse, fits between main crops.",
        "key_points": ["Summer catch crop", "Harvest pods in 2-3 pickings"],
    },
    {
        "name": "Groundnut",
        "category": "Oilseed",
        "season": "Kharif/Zaid",
        "soil": ["Sandy Loam", "Loamy", "Red"],
        "climate_requirements": {
            "temperature": {"min": 22, "max": 35, "optimal": 28},
            "humidity": {"min": 40, "max": 75},
            "rainfall": {"min": 500, "max": 1250},
        },
        "duration": "100-130 days",
        "climate_zone": "Tropical",
        "description": "Oilseed legume, enriches soil with nitrogen.",
        "key_points": ["Needs loose soil for pegging", "Apply gypsum at flowering"],
    },
    {
        "name": "Soybean",
        "category": "Oilseed",
        "season": "Kharif",
        "soil": ["Black", "Loamy", "Clay Loam"],
        "climate_requirements": {
            "temperature": {"min": 20, "max": 35, "optimal": 27},
            "humidity": {"min": 50, "max": 85},
            "rainfall": {"min": 600, "max": 1000},
        },
        "duration": "90-120 days",
        "climate_zone": "Subtropical",
        "description": "High-protein oilseed, good for intercropping.",
        "key_points": ["Needs good drainage", "Sow after 100 mm monsoon rain"],
    },
    {
        "name": "Mustard",
        "category": "Oilseed",
        "season": "Rabi",
        "soil": ["Loamy", "Clay Loam", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 10, "max": 25, "optimal": 18},
            "humidity": {"min": 30, "max": 60},
            "rainfall": {"min": 250, "max": 400},
        },
        "duration": "90-120 days",
        "climate_zone": "Temperate",
        "description": "Cool-season oilseed, drought-tolerant.",
        "key_points": ["Watch for aphids in January", "One or two irrigations"],
    },

    # --- Vegetables ---
    {
        "name": "Tomato",
        "category": "Vegetable",
        "season": "Rabi/Zaid",
        "soil": ["Loamy", "Sandy Loam", "Red"],
        "climate_requirements": {
            "temperature": {"min": 18, "max": 32, "optimal": 24},
            "humidity": {"min": 40, "max": 70},
            "rainfall": {"min": 400, "max": 600},
        },
        "duration": "60-90 days",
        "climate_zone": "Subtropical",
        "description": "Year-round in warm climates, high market value.",
        "key_points": ["Stake plants", "Mulch to reduce blight splash"],
    },
    {
        "name": "Potato",
        "category": "Vegetable",
        "season": "Rabi",
        "soil": ["Loamy", "Sandy Loam"],
        "climate_requirements": {
            "temperature": {"min": 10, "max": 25, "optimal": 18},
            "humidity": {"min": 60, "max": 85},
            "rainfall": {"min": 300, "max": 500},
        },
        "duration": "75-120 days",
        "climate_zone": "Temperate",
        "description": "Cool-season tuber, high yield per area.",
        "key_points": ["Earth up twice", "Use certified seed tubers"],
    },
    {
        "name": "Onion",
        "category": "Vegetable",
        "season": "Rabi/Kharif",
        "soil": ["Loamy", "Sandy Loam", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 12, "max": 28, "optimal": 20},
            "humidity": {"min": 40, "max": 70},
            "rainfall": {"min": 350, "max": 650},
        },
        "duration": "90-150 days",
        "climate_zone": "Subtropical",
        "description": "Essential kitchen staple, good storage life.",
        "key_points": ["Stop irrigation 10 days before harvest", "Cure bulbs before storage"],
    },
    {
        "name": "Okra",
        "category": "Vegetable",
        "season": "Kharif/Zaid",
        "soil": ["Loamy", "Sandy Loam", "Clay Loam"],
        "climate_requirements": {
            "temperature": {"min": 22, "max": 38, "optimal": 30},
            "humidity": {"min": 50, "max": 80},
            "rainfall": {"min": 500, "max": 1000},
        },
        "duration": "45-65 days",
        "climate_zone": "Tropical",
        "description": "Warm-season vegetable, continuous harvesting.",
        "key_points": ["Pick pods every 2 days", "Watch for yellow vein mosaic"],
    },
    {
        "name": "Cauliflower",
        "category": "Vegetable",
        "season": "Rabi",
        "soil": ["Loamy", "Clay Loam"],
        "climate_requirements": {
            "temperature": {"min": 10, "max": 22, "optimal": 17},
            "humidity": {"min": 60, "max": 80},
            "rainfall": {"min": 300, "max": 500},
        },
        "duration": "60-90 days",
        "climate_zone": "Temperate",
        "description": "Cool-season brassica, needs consistent moisture.",
        "key_points": ["Blanch curds by tying leaves", "Boron deficiency causes browning"],
    },
    {
        "name": "Cucumber",
        "category": "Vegetable",
        "season": "Zaid/Kharif",
        "soil": ["Sandy Loam", "Loamy"],
        "climate_requirements": {
            "temperature": {"min": 18, "max": 35, "optimal": 27},
            "humidity": {"min": 50, "max": 80},
            "rainfall": {"min": 400, "max": 800},
        },
        "duration": "40-60 days",
        "climate_zone": "Tropical",
        "description": "Fast-growing vine crop, needs adequate water.",
        "key_points": ["Trellis for straight fruit", "Harvest young"],
    },

    # --- Fruits ---
    {
        "name": "Watermelon",
        "category": "Fruit",
        "season": "Zaid",
        "soil": ["Sandy", "Sandy Loam"],
        "climate_requirements": {
            "temperature": {"min": 25, "max": 40, "optimal": 32},
            "humidity": {"min": 40, "max": 70},
            "rainfall": {"min": 400, "max": 600},
        },
        "duration": "70-90 days",
        "climate_zone": "Arid",
        "description": "Hot-season fruit, needs space and ample water.",
        "key_points": ["Grown on riverbeds", "Reduce water at ripening for sweetness"],
    },
    {
        "name": "Muskmelon",
        "category": "Fruit",
        "season": "Zaid",
        "soil": ["Sandy Loam", "Loamy"],
        "climate_requirements": {
            "temperature": {"min": 24, "max": 38, "optimal": 30},
            "humidity": {"min": 35, "max": 65},
            "rainfall": {"min": 300, "max": 500},
        },
        "duration": "60-90 days",
        "climate_zone": "Arid",
        "description": "Summer fruit, prefers dry hot conditions.",
        "key_points": ["Dry weather at ripening improves quality"],
    },
    {
        "name": "Banana",
        "category": "Fruit",
        "season": "Kharif",
        "soil": ["Loamy", "Clay Loam", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 22, "max": 38, "optimal": 28},
            "humidity": {"min": 60, "max": 90},
            "rainfall": {"min": 1200, "max": 2200},
        },
        "duration": "270-365 days",
        "climate_zone": "Tropical",
        "description": "Tropical fruit, year-round in warm humid areas.",
        "key_points": ["Desucker regularly", "Prop bunches against wind"],
    },

    # --- Cash Crops & Spices ---
    {
        "name": "Sugarcane",
        "category": "Cash Crop",
        "season": "Kharif",
        "soil": ["Clay Loam", "Loamy", "Black", "Alluvial"],
        "climate_requirements": {
            "temperature": {"min": 20, "max": 40, "optimal": 30},
            "humidity": {"min": 60, "max": 90},
            "rainfall": {"min": 1000, "max": 1500},
        },
        "duration": "300-365 days",
        "climate_zone": "Tropical",
        "description": "Long-duration cash crop, needs lots of water.",
        "key_points": ["Trash mulching saves water", "Ratoon crop possible"],
    },
    {
        "name": "Cotton",
        "category": "Cash Crop",
        "season": "Kharif",
        "soil": ["Black", "Loamy", "Clay Loam"],
        "climate_requirements": {
            "temperature": {"min": 22, "max": 38, "optimal": 30},
            "humidity": {"min": 40, "max": 70},
            "rainfall": {"min": 500, "max": 1000},
        },
        "duration": "150-180 days",
        "climate_zone": "Subtropical",
        "description": "Major fiber crop, warm-season.",
        "key_points": ["Black cotton soil preferred", "Monitor pink bollworm"],
    },
    {
        "name": "Jute",
        "category": "Cash Crop",
        "season": "Kharif",
        "soil": ["Alluvial", "Clay", "Silt"],
        "climate_requirements": {
            "temperature": {"min": 24, "max": 38, "optimal": 30},
            "humidity": {"min": 70, "max": 95},
            "rainfall": {"min": 1200, "max": 2000},
        },
        "duration": "100-150 days",
        "climate_zone": "Tropical",
        "description": "Fiber crop, needs hot humid conditions.",
        "key_points": ["Needs clean water for retting"],
    },
    {
        "name": "Turmeric",
        "category": "Spice",
        "season": "Kharif",
        "soil": ["Loamy", "Clay Loam", "Red"],
        "climate_requirements": {
            "temperature": {"min": 20, "max": 35, "optimal": 27},
            "humidity": {"min": 60, "max": 90},
            "rainfall": {"min": 1500, "max": 2250},
        },
        "duration": "210-270 days",
        "climate_zone": "Tropical",
        "description": "Rhizome spice, needs warm humid conditions.",
        "key_points": ["Raised beds avoid rhizome rot", "Mulch heavily after planting"],
    },
    {
        "name": "Cumin",
        "category": "Spice",
        "season": "Rabi",
        "soil": ["Sandy Loam", "Loamy"],
        "climate_requirements": {
            "temperature": {"min": 15, "max": 30, "optimal": 22},
            "humidity": {"min": 30, "max": 55},
            "rainfall": {"min": 200, "max": 400},
        },
        "duration": "100-120 days",
        "climate_zone": "Arid",
        "description": "High-value spice, dry conditions preferred.",
        "key_points": ["Cloudy humid weather invites blight", "Light irrigations only"],
    },
]


def _as_number(value: Any, field: str, required: bool) -> Optional[float]:
    """Coerce a request value to float. Absent/blank optional values become None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidInput("Temperature and humidity are required")
        return None
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise InvalidInput(f"{field} must be a finite number")
    return number


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_conditions(raw: Dict[str, Any]) -> ObservedConditions:
    """
    Validate a raw request body into ObservedConditions.
    Temperature and humidity are required numbers; everything else is optional and
    an absent or blank value means "no filter".
    """
    if raw is None:
        raw = {}
    return ObservedConditions(
        temperature=_as_number(raw.get("temperature"), "temperature", required=True),
        humidity=_as_number(raw.get("humidity"), "humidity", required=True),
        rainfall=_as_number(raw.get("rainfall"), "rainfall", required=False),
        season=_as_text(raw.get("season")),
        soil_type=_as_text(raw.get("soil_type")),
        area=_as_text(raw.get("area")),
    )


def _in_range(value: float, bounds: Dict[str, Any]) -> bool:
    return bounds["min"] <= value <= bounds["max"]


def _is_candidate(crop: Dict[str, Any], conditions: ObservedConditions) -> bool:
    req = crop["climate_requirements"]
    if not _in_range(conditions.temperature, req["temperature"]):
        return False
    if not _in_range(conditions.humidity, req["humidity"]):
        return False
    if conditions.rainfall is not None and not _in_range(conditions.rainfall, req["rainfall"]):
        return False
    if conditions.season and conditions.season.lower() not in crop["season"].lower():
        return False
    if conditions.soil_type:
        wanted = conditions.soil_type.lower()
        if not any(s.lower() == wanted for s in crop["soil"]):
            return False
    return True


def filter_candidates(
    catalog: Sequence[Dict[str, Any]],
    conditions: ObservedConditions,
) -> List[Dict[str, Any]]:
    """Catalog entries whose requirement ranges admit the conditions, in catalog order."""
    return [crop for crop in catalog if _is_candidate(crop, conditions)]


def score_crop(crop: Dict[str, Any], conditions: ObservedConditions) -> int:
    """
    Suitability score 0-100:
    temperature (40) by distance from optimum, humidity (30) and rainfall (30) by
    distance from the range midpoint. Missing rainfall scores a flat 15.
    """
    req = crop["climate_requirements"]

    temp_diff = abs(conditions.temperature - req["temperature"]["optimal"])
    temp_score = max(0.0, TEMP_MAX_POINTS - temp_diff * TEMP_PENALTY_PER_DEGREE)

    avg_humidity = (req["humidity"]["min"] + req["humidity"]["max"]) / 2
    humidity_score = max(0.0, HUMIDITY_MAX_POINTS - abs(conditions.humidity - avg_humidity) / HUMIDITY_DIVISOR)

    if conditions.rainfall is not None:
        avg_rainfall = (req["rainfall"]["min"] + req["rainfall"]["max"]) / 2
        rainfall_score = max(0.0, RAINFALL_MAX_POINTS - abs(conditions.rainfall - avg_rainfall) / RAINFALL_DIVISOR)
    else:
        rainfall_score = RAINFALL_DEFAULT_POINTS

    # Round half up, not to even
    total = int(math.floor(temp_score + humidity_score + rainfall_score + 0.5))
    return max(0, min(100, total))


def rank_crops(
    candidates: Sequence[Dict[str, Any]],
    conditions: ObservedConditions,
) -> List[Dict[str, Any]]:
    """New records with suitability_score, best first. sort() is stable so ties keep catalog order."""
    ranked = [{**crop, "suitability_score": score_crop(crop, conditions)} for crop in candidates]
    ranked.sort(key=lambda c: c["suitability_score"], reverse=True)
    return ranked


def _display_conditions(conditions: ObservedConditions) -> Dict[str, str]:
    return {
        "temperature": f"{conditions.temperature:g}°C",
        "humidity": f"{conditions.humidity:g}%",
        "rainfall": f"{conditions.rainfall:g} mm" if conditions.rainfall is not None else "N/A",
        "season": conditions.season or "All seasons",
        "soil_type": conditions.soil_type or "Any",
    }


def recommend_crops(
    catalog: Sequence[Dict[str, Any]],
    conditions: Any,
    top_n: int = DEFAULT_TOP_N,
) -> Dict[str, Any]:
    """
    Recommend crops for the observed conditions.

    Args:
        catalog: Read-only crop catalog (e.g. CROP_DATABASE)
        conditions: ObservedConditions or a raw request dict
        top_n: Maximum number of recommendations returned

    Returns:
        Dict with the echoed conditions, total_suitable_crops (before truncation)
        and recommendations sorted by suitability_score.

    Raises:
        InvalidInput: temperature or humidity missing / not numeric.
    """
    if not isinstance(conditions, ObservedConditions):
        conditions = normalize_conditions(conditions)

    candidates = filter_candidates(catalog, conditions)
    ranked = rank_crops(candidates, conditions)
    top_crops = ranked[:max(0, top_n)]

    logger.debug(
        "Crop recommendation: %d of %d crops suitable (temp=%s, humidity=%s, rainfall=%s)",
        len(candidates), len(catalog), conditions.temperature, conditions.humidity, conditions.rainfall,
    )

    return {
        "success": True,
        "location": conditions.area,
        "conditions": _display_conditions(conditions),
        "total_suitable_crops": len(candidates),
        "recommendations": top_crops,
        "message": (
            "Crop recommendations generated successfully"
            if candidates
            else "No suitable crops found for current conditions"
        ),
    }


def find_crop(catalog: Sequence[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
    """Case-insensitive lookup by crop name."""
    wanted = (name or "").strip().lower()
    for crop in catalog:
        if crop["name"].lower() == wanted:
            return crop
    return None
