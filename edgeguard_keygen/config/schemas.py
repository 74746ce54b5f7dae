"""Settings file schema for the keygen CLI."""

KEYGEN_CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "keygen": {
            "type": "object",
            "properties": {
                "project": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Doppler project name"
                },
                "config": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Doppler config name"
                },
                "key_prefix": {
                    "type": "string",
                    "pattern": r"^[A-Z][A-Z0-9_]*$",
                    "default": "JWT_SIGNING_KEY"
                },
                "key_size": {
                    "type": "integer",
                    "minimum": 32,
                    "maximum": 64,
                    "default": 32
                },
                "max_age": {
                    "type": "string",
                    "description": "Retention window for inactive keys, e.g. 2160h or 90d",
                    "default": "2160h"
                },
                "doppler_binary": {
                    "type": "string",
                    "minLength": 1,
                    "default": "doppler"
                },
                "timeout": {
                    "type": ["number", "null"],
                    "exclusiveMinimum": 0,
                    "description": "Seconds to wait for each doppler call"
                }
            },
            "additionalProperties": False
        }
    },
    "required": ["keygen"],
    "additionalProperties": False
}

DEFAULT_SETTINGS = {
    "project": None,
    "config": None,
    "key_prefix": "JWT_SIGNING_KEY",
    "key_size": 32,
    "max_age": "2160h",
    "doppler_binary": "doppler",
    "timeout": None,
}
