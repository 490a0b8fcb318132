"""Internal constants shared across the library."""

#: Watched-key filter used when a store defines neither a key nor profile contexts.
DEFAULT_WATCHED_KEY = "/application/*"

#: Key prefix under which feature flags are stored.
FEATURE_FLAG_PREFIX = ".appconfig.featureflag/"
DEFAULT_FEATURE_FLAG_FILTER = f"{FEATURE_FLAG_PREFIX}*"

#: Label filter matching settings that carry no label.
NULL_LABEL = "\0"

WILDCARD = "*"
FILTER_SEPARATOR = ","

REFRESH_EVENT_MESSAGE = "Configuration Refresh Event"

#: Default minimum interval between two poll attempts, in seconds.
DEFAULT_REFRESH_INTERVAL: float = 30.0
