"""Configuration settings for the verification gateway."""
import os


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


APP_NAME = "Document & Face Verification Gateway"
APP_VERSION = "0.1.0"

# API Security (API Key Authentication)
# Comma-separated list of valid API keys. If empty, auth is disabled.
API_KEYS = [k.strip() for k in os.environ.get("API_KEYS", "").split(",") if k.strip()]

# Logging configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_JSON_FORMAT = os.environ.get("LOG_JSON_FORMAT", "true").lower() == "true"


# =============================================================================
# DOCUMENT READER VENDOR (DocR)
# =============================================================================

DOCR_DEFAULT_TIMEOUT_SECONDS = 60

DOCR_BASE_URL = os.environ.get("DOCR_BASE_URL", "http://localhost:8080")
DOCR_PROCESS_ENDPOINT = os.environ.get("DOCR_PROCESS_ENDPOINT", "/api/process")
DOCR_API_KEY = os.environ.get("DOCR_API_KEY", "")
DOCR_API_KEY_HEADER = os.environ.get("DOCR_API_KEY_HEADER", "")
DOCR_TIMEOUT_SECONDS = _env_int("DOCR_TIMEOUT_SECONDS", DOCR_DEFAULT_TIMEOUT_SECONDS)

# Face matching performed by the document reader itself (optional)
DOCR_USE_FACE_API = os.environ.get("DOCR_USE_FACE_API", "false").lower() == "true"
DOCR_FACE_API_URL = os.environ.get("DOCR_FACE_API_URL", "http://localhost:41101")
DOCR_FACE_API_MODE = os.environ.get("DOCR_FACE_API_MODE", "match")
DOCR_FACE_API_THRESHOLD = _env_float("DOCR_FACE_API_THRESHOLD", 0.85)

# Processing scenario used when the caller does not send one
DEFAULT_SCENARIO = "FullAuth"


# =============================================================================
# FACE RECOGNITION VENDOR (Face API)
# =============================================================================

FACE_API_DEFAULT_TIMEOUT_SECONDS = 30

FACE_API_BASE_URL = os.environ.get("FACE_API_BASE_URL", "http://localhost:41101")
FACE_API_DETECT_ENDPOINT = os.environ.get("FACE_API_DETECT_ENDPOINT", "/api/detect")
FACE_API_MATCH_ENDPOINT = os.environ.get("FACE_API_MATCH_ENDPOINT", "/api/match")
FACE_API_LIVENESS_ENDPOINT = os.environ.get("FACE_API_LIVENESS_ENDPOINT", "/api/v2/liveness")
FACE_API_KEY = os.environ.get("FACE_API_KEY", "")
FACE_API_KEY_HEADER = os.environ.get("FACE_API_KEY_HEADER", "")
FACE_API_TIMEOUT_SECONDS = _env_int("FACE_API_TIMEOUT_SECONDS", FACE_API_DEFAULT_TIMEOUT_SECONDS)

# Attributes requested from the detect endpoint
FACE_DETECT_ATTRIBUTES = ["Age", "Sex", "Emotion", "Smile", "Mouth"]

# Scenario used for ICAO photo compliance checks
ICAO_SCENARIO = os.environ.get("ICAO_SCENARIO", "QualityICAO")

# Face API quality group ids → section names
ICAO_GROUP_NAMES = {
    1: "ImageCharacteristics",
    2: "HeadSizeAndPosition",
    3: "FaceQuality",
    4: "EyesCharacteristics",
    5: "ShadowsAndLightning",
    6: "PoseAndExpression",
    7: "HeadOcclusion",
    8: "Background",
}


# =============================================================================
# RESPONSE NORMALIZATION
# =============================================================================

# Vendor JSON subtrees deeper than this are not explored
JSON_MAX_DEPTH = _env_int("JSON_MAX_DEPTH", 256)

# Base64 portrait detection
BASE64_MIN_LENGTH = 200
PORTRAIT_MIN_SCORE = 0.0
PORTRAIT_PATH_BONUS = 50
MRZ_SIGNATURE_PATH_PENALTY = 20
LOGO_PATH_PENALTY = 30
LENGTH_SCORE_CAP = 50

PORTRAIT_PATH_HINTS = ("portrait", "face")
MRZ_SIGNATURE_PATH_HINTS = ("mrz", "signature")
LOGO_PATH_HINTS = ("logo", "emblem", "flag")

PORTRAIT_FALLBACK_KEYS = [
    "portrait",
    "portraitimage",
    "portraitimagedata",
    "portraitimagebase64",
    "faceimage",
    "face",
    "image",
    "imagedata",
    "imagebase64",
]

# Field names checked for a transaction id and a generic status
TRANSACTION_ID_KEYS = ["transactionId", "transactionID", "id", "TransactionId", "TransactionID"]
GENERIC_STATUS_KEYS = ["status", "overallStatus", "result", "ResultStatus"]

# Document framing thresholds (percent of image covered / degrees)
FRAME_AREA_GOOD = 70
FRAME_AREA_BORDERLINE = 50
FRAME_ANGLE_ACCEPTABLE = 2
FRAME_ANGLE_NOTICEABLE = 10

# Number of failing items quoted in fraud check details
FRAUD_DETAIL_SAMPLE_SIZE = 3
FRAUD_FIELD_SAMPLE_SIZE = 5
