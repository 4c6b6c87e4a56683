"""
AgriSense - OpenCV checks on uploaded leaf photos.
Decodes the upload in memory, reports sharpness (Laplacian variance) and the share
of yellow/brown pixels. Not a disease classifier; images are never written to disk.
"""
import cv2
import numpy as np
from typing import Tuple, Dict, Any

MAX_DIMENSION = 640
LAPLACIAN_BLUR_THRESHOLD = 100

# HSV ranges (OpenCV: H 0-180, S 0-255, V 0-255)
YELLOW_LOWER = np.array([20, 100, 100])
YELLOW_UPPER = np.array([35, 255, 255])
BROWN_LOWER = np.array([8, 60, 40])
BROWN_UPPER = np.array([20, 255, 200])


def _resize_max_dimension(img: np.ndarray, max_dim: int) -> Tuple[np.ndarray, Tuple[int, int]]:
    """Resize so the longest side is max_dim, preserving aspect ratio. Returns (resized, (orig_w, orig_h))."""
    h, w = img.shape[:2]
    orig_shape = (w, h)
    if max(h, w) <= max_dim:
        return img, orig_shape
    scale = max_dim / max(h, w)
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_AREA), orig_shape


def decode_image(image_bytes: bytes) -> np.ndarray:
    if not image_bytes:
        raise ValueError("Invalid image: empty file")
    nparr = np.frombuffer(image_bytes, np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Invalid image: could not decode")
    return img


def laplacian_variance(image: np.ndarray) -> float:
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return float(cv2.Laplacian(gray, cv2.CV_64F).var())


def discoloration_percentage(image: np.ndarray) -> float:
    """Share of yellow or brown pixels, 0-100."""
    hsv = cv2.cvtColor(image, cv2.COLOR_BGR2HSV)
    yellow = cv2.inRange(hsv, YELLOW_LOWER, YELLOW_UPPER)
    brown = cv2.inRange(hsv, BROWN_LOWER, BROWN_UPPER)
    mask = cv2.bitwise_or(yellow, brown)
    total = mask.shape[0] * mask.shape[1]
    if not total:
        return 0.0
    return round(int(cv2.countNonZero(mask)) / total * 100.0, 2)


def analyze_leaf_image(image_bytes: bytes) -> Dict[str, Any]:
    """
    Quality summary of a leaf photo.
    Raises ValueError when the bytes are empty or not a decodable image.
    """
    img = decode_image(image_bytes)
    processed, original_resolution = _resize_max_dimension(img, MAX_DIMENSION)
    variance = laplacian_variance(processed)
    return {
        "original_resolution": original_resolution,
        "processing_resolution": (processed.shape[1], processed.shape[0]),
        "laplacian_variance": round(variance, 2),
        "is_blurry": variance < LAPLACIAN_BLUR_THRESHOLD,
        "discoloration_percentage": discoloration_percentage(processed),
    }
