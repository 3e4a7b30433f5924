"""Application constants."""

USER_AGENT = "hospital-finder/0.3 (+health-passport)"

DEFAULT_LATITUDE = 3.139003
DEFAULT_LONGITUDE = 101.686855
DEFAULT_SEARCH_RADIUS_M = 5000
LIVE_LOCATION_TIMEOUT_SECONDS = 10.0
EARTH_RADIUS_KM = 6371.0

PLACES_NEARBY_ENDPOINT = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
PLACE_CATEGORIES = ("hospital", "health", "doctor", "clinic")
GENERIC_PLACE_TAGS = ("point_of_interest", "establishment", "health")

HOSPITAL_TYPES = ("government", "private", "clinic", "specialist")
TYPE_FILTER_ALL = "all"
TYPE_FILTERS = (TYPE_FILTER_ALL, *HOSPITAL_TYPES)
SORT_MODES = ("distance", "name", "rating")

PERMISSION_UNDETERMINED = "undetermined"
PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_STATES = (PERMISSION_UNDETERMINED, PERMISSION_GRANTED, PERMISSION_DENIED)

LOCATION_SOURCES = ("cached", "live", "default")

SOURCE_EXTERNAL = "external"
SOURCE_INTERNAL = "internal"
SOURCE_NONE = "none"

PERMISSION_DENIED_MESSAGE = "Permission to access location was denied"

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "session_id",
    "stage",
    "source",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
