"""
AgriSense - Rule-based disease lookup.
Picks a common disease for the crop (randomised demo rule, not an image classifier),
then attaches database details, treatment, fertilizer and irrigation advice.
"""
import random
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

COMMON_DISEASES: Dict[str, List[str]] = {
    "tomato": ["Early Blight", "Late Blight", "Leaf Spot"],
    "potato": ["Late Blight", "Early Blight", "Bacterial Wilt"],
    "rice": ["Brown Spot", "Blast", "Bacterial Leaf Blight"],
    "wheat": ["Rust", "Powdery Mildew", "Leaf Blight"],
    "corn": ["Gray Leaf Spot", "Northern Leaf Blight", "Common Rust"],
}
DEFAULT_CROP = "tomato"
CONFIDENCE_MIN, CONFIDENCE_SPAN = 75.0, 20.0

DISEASE_DATABASE: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "Early Blight",
        "crop": "Tomato",
        "pathogen": "Alternaria solani",
        "description": "Fungal disease causing concentric-ringed brown spots on older leaves.",
        "symptoms": ["Brown spots with target-like rings", "Yellowing around spots", "Lower leaves drop first"],
        "immediate_action": "Remove and destroy lower infected leaves",
        "treatment": {
            "organic": ["Neem oil spray", "Copper soap spray"],
            "chemical": ["Mancozeb 75 WP @ 2.5 g/L", "Chlorothalonil @ 2 g/L"],
        },
        "prevention": ["Mulch to stop soil splash", "Rotate with non-solanaceous crops", "Stake plants for airflow"],
    },
    {
        "id": 2,
        "name": "Late Blight",
        "crop": "Tomato",
        "pathogen": "Phytophthora infestans",
        "description": "Water-mould disease spreading fast in cool wet weather.",
        "symptoms": ["Greasy dark lesions on leaves", "White mould on leaf undersides", "Brown firm fruit rot"],
        "immediate_action": "Uproot badly infected plants and keep foliage dry",
        "treatment": {
            "organic": ["Copper hydroxide spray"],
            "chemical": ["Metalaxyl + Mancozeb @ 2.5 g/L", "Cymoxanil + Mancozeb @ 3 g/L"],
        },
        "prevention": ["Avoid overhead irrigation", "Use resistant varieties", "Spray before forecast rain"],
    },
    {
        "id": 3,
        "name": "Leaf Spot",
        "crop": "Tomato",
        "pathogen": "Septoria lycopersici",
        "description": "Small circular spots with grey centres, mostly on lower leaves.",
        "symptoms": ["Many small grey-centred spots", "Dark spot margins", "Premature leaf drop"],
        "immediate_action": "Prune infected lower leaves",
        "treatment": {
            "organic": ["Baking soda solution", "Neem oil spray"],
            "chemical": ["Chlorothalonil @ 2 g/L"],
        },
        "prevention": ["Remove crop debris", "Wider spacing", "Water at the base"],
    },
    {
        "id": 4,
        "name": "Late Blight",
        "crop": "Potato",
        "pathogen": "Phytophthora infestans",
        "description": "Destructive blight of foliage and tubers in cool humid weather.",
        "symptoms": ["Water-soaked leaf lesions", "White growth under leaves", "Reddish-brown tuber rot"],
        "immediate_action": "Destroy infected haulms and avoid irrigation",
        "treatment": {
            "organic": ["Copper oxychloride spray"],
            "chemical": ["Metalaxyl + Mancozeb @ 2.5 g/L", "Dimethomorph @ 1 g/L"],
        },
        "prevention": ["Certified seed tubers", "High earthing up", "Prophylactic sprays in foggy weather"],
    },
    {
        "id": 5,
        "name": "Bacterial Wilt",
        "crop": "Potato",
        "pathogen": "Ralstonia solanacearum",
        "description": "Soil-borne bacterial disease causing sudden wilting.",
        "symptoms": ["Wilting without yellowing", "Brown ring in cut tuber", "Bacterial ooze from stem"],
        "immediate_action": "Remove wilted plants with surrounding soil",
        "treatment": {
            "organic": ["Bleaching powder soil drench @ 12 kg/ha"],
            "chemical": [],
        },
        "prevention": ["Long crop rotation", "Disease-free seed", "Avoid waterlogging"],
    },
    {
        "id": 6,
        "name": "Blast",
        "crop": "Rice",
        "pathogen": "Magnaporthe oryzae",
        "description": "Fungal disease forming spindle-shaped lesions on leaves and neck.",
        "symptoms": ["Spindle-shaped grey lesions", "Neck rot and broken panicles", "Chaffy grains"],
        "immediate_action": "Stop excess nitrogen application",
        "treatment": {
            "organic": ["Pseudomonas fluorescens spray"],
            "chemical": ["Tricyclazole 75 WP @ 0.6 g/L", "Isoprothiolane @ 1.5 ml/L"],
        },
        "prevention": ["Resistant varieties", "Balanced nitrogen", "Seed treatment"],
    },
    {
        "id": 7,
        "name": "Brown Spot",
        "crop": "Rice",
        "pathogen": "Bipolaris oryzae",
        "description": "Fungal disease linked to nutrient-poor soils.",
        "symptoms": ["Oval brown spots on leaves", "Discoloured grains"],
        "immediate_action": "Correct potassium and silicon deficiency",
        "treatment": {
            "organic": ["Trichoderma seed treatment"],
            "chemical": ["Mancozeb @ 2.5 g/L", "Propiconazole @ 1 ml/L"],
        },
        "prevention": ["Balanced fertilization", "Clean seed"],
    },
    {
        "id": 8,
        "name": "Bacterial Leaf Blight",
        "crop": "Rice",
        "pathogen": "Xanthomonas oryzae",
        "description": "Bacterial disease causing yellow-to-white drying from leaf tips.",
        "symptoms": ["Wavy yellow leaf margins", "Drying from tips downward"],
        "immediate_action": "Drain field and skip nitrogen top dressing",
        "treatment": {
            "organic": ["Fresh cow dung extract spray"],
            "chemical": ["Streptocycline + Copper oxychloride"],
        },
        "prevention": ["Resistant varieties", "Avoid clipping seedlings"],
    },
    {
        "id": 9,
        "name": "Rust",
        "crop": "Wheat",
        "pathogen": "Puccinia spp.",
        "description": "Fungal disease producing orange to black pustules.",
        "symptoms": ["Orange or yellow pustules on leaves", "Powdery spores rub off"],
        "immediate_action": "Spray fungicide at first appearance",
        "treatment": {
            "organic": ["Sulphur dust"],
            "chemical": ["Propiconazole 25 EC @ 1 ml/L", "Tebuconazole @ 1 ml/L"],
        },
        "prevention": ["Resistant varieties", "Timely sowing"],
    },
    {
        "id": 10,
        "name": "Powdery Mildew",
        "crop": "Wheat",
        "pathogen": "Blumeria graminis",
        "description": "White powdery fungal growth on leaves and stems.",
        "symptoms": ["White powdery patches", "Yellowing leaves"],
        "immediate_action": "Improve airflow and reduce nitrogen",
        "treatment": {
            "organic": ["Wettable sulphur @ 2 g/L"],
            "chemical": ["Triadimefon @ 1 g/L"],
        },
        "prevention": ["Avoid dense sowing", "Balanced fertilization"],
    },
    {
        "id": 11,
        "name": "Common Rust",
        "crop": "Corn",
        "pathogen": "Puccinia sorghi",
        "description": "Cinnamon-brown pustules on both leaf surfaces.",
        "symptoms": ["Brown elongated pustules", "Leaf yellowing in severe cases"],
        "immediate_action": "Scout fields and spray if infection is early",
        "treatment": {
            "organic": ["Neem oil spray"],
            "chemical": ["Mancozeb @ 2.5 g/L"],
        },
        "prevention": ["Resistant hybrids", "Early planting"],
    },
]

DEFAULT_FERTILIZER_ADVICE: Dict[str, Any] = {
    "recommendation": "Balanced NPK fertilizer",
    "dosage": "10-10-10 NPK @ 2kg per 100 sq.m",
    "timing": "Apply after disease treatment",
    "additional": [
        "Add compost for soil health",
        "Use micronutrient spray if deficiency observed",
        "Avoid over-fertilization which can worsen disease",
    ],
    "notes": "Healthy plants resist diseases better. Maintain soil fertility.",
}

DEFAULT_IRRIGATION_ADVICE: Dict[str, Any] = {
    "frequency": "Once every 3-4 days depending on soil moisture",
    "method": "Drip irrigation recommended to avoid leaf wetness",
    "amount": "20-25mm per irrigation",
    "timing": "Early morning preferred",
    "notes": [
        "Avoid waterlogging which promotes disease",
        "Reduce watering during rainy season",
        "Ensure proper drainage",
    ],
}


def detect_disease_rule_based(crop_name: Optional[str], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Randomly pick one of the crop's common diseases; unknown crops use the tomato list."""
    rng = rng or random
    crop = (crop_name or DEFAULT_CROP).strip().lower()
    diseases = COMMON_DISEASES.get(crop, COMMON_DISEASES[DEFAULT_CROP])
    return {
        "disease_name": rng.choice(diseases),
        "confidence": round(CONFIDENCE_MIN + rng.random() * CONFIDENCE_SPAN, 2),
    }


def find_disease_info(disease_name: str, crop_name: Optional[str]) -> Optional[Dict[str, Any]]:
    name = disease_name.lower()
    crop = (crop_name or "").strip().lower()
    for disease in DISEASE_DATABASE:
        if disease["name"].lower() == name and disease["crop"].lower() == crop:
            return disease
    return None


def get_default_disease_info(disease_name: str) -> Dict[str, Any]:
    return {
        "name": disease_name,
        "description": f"{disease_name} is a common plant disease that affects crop health and yield.",
        "symptoms": [
            "Discoloration of leaves",
            "Wilting or drooping",
            "Spots or lesions on plant parts",
        ],
        "immediate_action": "Remove and destroy infected plant parts to prevent spread",
        "treatment": {
            "organic": ["Neem oil spray", "Garlic extract", "Baking soda solution"],
            "chemical": ["Copper-based fungicide", "Systemic fungicide as per label"],
        },
        "prevention": [
            "Use disease-resistant varieties",
            "Maintain proper spacing for air circulation",
            "Avoid overhead watering",
            "Practice crop rotation",
        ],
    }


def detect_disease(
    crop_name: Optional[str],
    rng: Optional[random.Random] = None,
    image_quality: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Full detection response: detection result, disease details and advice.
    image_quality (from leaf_image.analyze_leaf_image) is echoed when present.
    """
    result = detect_disease_rule_based(crop_name, rng=rng)
    disease_info = find_disease_info(result["disease_name"], crop_name)

    response = {
        "success": True,
        "detection": {
            "disease_name": result["disease_name"],
            "confidence": result["confidence"],
            "crop": crop_name or "Unknown",
            "detected_at": datetime.now(timezone.utc).isoformat(),
        },
        "disease_info": disease_info or get_default_disease_info(result["disease_name"]),
        "recommendations": {
            "immediate_action": disease_info["immediate_action"] if disease_info else "Remove infected parts",
            "treatment": disease_info["treatment"] if disease_info else {},
            "prevention": disease_info["prevention"] if disease_info else [],
            "fertilizer_advice": dict(DEFAULT_FERTILIZER_ADVICE),
            "irrigation_advice": dict(DEFAULT_IRRIGATION_ADVICE),
        },
    }
    if image_quality is not None:
        response["image_quality"] = image_quality
    return response


def get_disease(disease_id: int) -> Optional[Dict[str, Any]]:
    for disease in DISEASE_DATABASE:
        if disease["id"] == disease_id:
            return disease
    return None


def list_diseases() -> List[Dict[str, Any]]:
    return list(DISEASE_DATABASE)
