DOMAIN = "marine_meteo"
VERSION = "0.3.0"

# Provider endpoints
FORECAST_API_URL = "https://my.meteoblue.com/packages/"
ACCOUNT_USAGE_API_URL = "https://my.meteoblue.com/account/usage"

# Config keys
CONF_API_KEY = "api_key"
CONF_FORECAST_INTERVAL = "forecast_interval"
CONF_ALTITUDE = "altitude"
CONF_ENABLE_POSITION_SUBSCRIPTION = "enable_position_subscription"
CONF_MAX_FORECAST_HOURS = "max_forecast_hours"
CONF_MAX_FORECAST_DAYS = "max_forecast_days"
CONF_ENABLE_AUTO_MOVING_FORECAST = "enable_auto_moving_forecast"
CONF_MOVING_SPEED_THRESHOLD = "moving_speed_threshold"
CONF_MONTHLY_CREDIT_LIMIT = "monthly_credit_limit"
CONF_POSITION_ENTITY = "position_entity"
CONF_HEADING_ENTITY = "heading_entity"
CONF_SPEED_ENTITY = "speed_entity"

# Defaults and bounds
DEFAULT_FORECAST_INTERVAL = 120     # minutes
MIN_FORECAST_INTERVAL = 30          # minutes
DEFAULT_ALTITUDE = 15               # metres above sea level
DEFAULT_MAX_FORECAST_HOURS = 72
MAX_FORECAST_HOURS_LIMIT = 168
DEFAULT_MAX_FORECAST_DAYS = 10
MAX_FORECAST_DAYS_LIMIT = 14
DEFAULT_MOVING_SPEED_THRESHOLD = 1.0    # knots
MIN_MOVING_SPEED_THRESHOLD = 0.1
MAX_MOVING_SPEED_THRESHOLD = 10.0
# Not reported by the usage endpoint; the common free tier is ~500k credits/month
DEFAULT_MONTHLY_CREDIT_LIMIT = 500_000

# Package enable flags: (package, cadence) → config key, default
PACKAGE_FLAG_DEFAULTS: dict[str, bool] = {
    "enable_basic_1h": True,
    "enable_basic_day": True,
    "enable_wind_1h": True,
    "enable_wind_day": False,
    "enable_sea_1h": True,
    "enable_sea_day": False,
    "enable_solar_1h": False,
    "enable_solar_day": False,
    "enable_agro_1h": False,
    "enable_agro_day": False,
    "enable_trend_1h": False,
    "enable_clouds_1h": False,
    "enable_clouds_day": False,
}

# Scheduling (seconds)
ACCOUNT_CHECK_INTERVAL = 6 * 60 * 60
INITIAL_ACCOUNT_CHECK_DELAY = 2
INITIAL_FORECAST_DELAY = 5          # give position listeners time to report
MOVING_REQUEST_DELAY = 0.1          # gap between per-hour provider requests
MOVING_HOUR_BUFFER = 2              # extra periods requested past the target hour

# Geodesy
EARTH_RADIUS_M = 6_371_000
KNOTS_TO_MPS = 0.514444
MPS_TO_KNOTS = 1.943844
FORECAST_DISTANCE_TRIGGER_M = 9260  # ~5 nautical miles

# Quota alert thresholds (percent)
USAGE_WARNING_PERCENT = 80
USAGE_CRITICAL_PERCENT = 90

# Data bus paths
CONTEXT_SELF = "vessels.self"
PATH_HOURLY_PREFIX = "environment.outside.meteo.forecast.hourly"
PATH_DAILY_PREFIX = "environment.outside.meteo.forecast.daily"
PATH_METADATA = "environment.outside.meteo.system.metadata"
PATH_ACCOUNT = "environment.outside.meteo.system.account"
PATH_USAGE_NOTIFICATION = "notifications.meteo.apiUsage"
PATH_ENGAGED = "commands.meteo.engaged"

# Home Assistant bus event and dispatcher signal
EVENT_DELTA = f"{DOMAIN}_delta"
SIGNAL_UPDATED = f"{DOMAIN}_updated_{{}}"

# Services
SERVICE_SET_MOVING_FORECAST = "set_moving_forecast"
SERVICE_REFRESH_FORECAST = "refresh_forecast"
ATTR_ENGAGED = "engaged"
