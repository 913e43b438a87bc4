"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Codes de statut, types de contenu et chemins de l'API Prokerala utilisés par le broker de jetons,
l'orchestrateur et le proxy.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_MULTIPLE_CHOICES = 300
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503
HTTP_GATEWAY_TIMEOUT = 504

# Types de contenu
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_SVG = "image/svg+xml"

# Chemins amont (Prokerala)
TOKEN_PATH = "/token"
ASTROLOGY_PREFIX = "/v2/astrology"
ENDPOINT_KUNDLI = "kundli"
ENDPOINT_DASHA_PERIODS = "dasha-periods"
ENDPOINT_NATAL_PLANET_POSITION = "natal-planet-position"
ENDPOINT_CHART = "chart"

# Limites et seuils courants
DEFAULT_TIMEOUT = 15.0
DEFAULT_TOKEN_SAFETY_MARGIN = 300
MAX_ERROR_BODY_CHARS = 500
