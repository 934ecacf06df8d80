"""
JSON Schemas for content files.

These check document structure before the pydantic models see the
data, so a malformed file is reported with a path into the document.
Field-level rules (ranges, branch sizes, unique keys) live on the models.
"""

COMPONENT_KINDS = ["simple_text", "background", "cut_in", "screen_effect", "character_sprite"]
CONTROLLER_KINDS = ["branch", "next", "if", "end"]
LOCK_KINDS = ["multi_times_play", "unlocked_different_end"]

_POINT = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 2,
    "maxItems": 2,
}

STORY_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Story",
    "type": "object",
    "required": ["id", "entries"],
    "additionalProperties": False,
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "entries": {"type": "array", "items": {"$ref": "#/$defs/entry"}},
    },
    "$defs": {
        "entry": {
            "type": "object",
            "required": ["step"],
            "additionalProperties": False,
            "properties": {
                "step": {"type": "integer", "minimum": 0},
                "controller": {
                    "oneOf": [{"type": "null"}, {"$ref": "#/$defs/controller"}],
                },
                "components": {"type": "array", "items": {"$ref": "#/$defs/component"}},
            },
        },
        "component": {
            "type": "object",
            "required": ["kind"],
            "properties": {
                "kind": {"enum": COMPONENT_KINDS},
                "text": {"type": "string"},
                "speaker": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {"name": {"type": "string"}},
                },
                "image_ref": {"type": "string"},
                "effect_ref": {"type": "string"},
                "step": {"type": "integer", "minimum": 0},
                "character": {
                    "type": "object",
                    "required": ["name", "face"],
                    "properties": {
                        "name": {"type": "string"},
                        "face": {"type": "string"},
                        "position": _POINT,
                        "scale": _POINT,
                    },
                },
            },
        },
        "controller": {
            "type": "object",
            "required": ["kind"],
            "properties": {
                "kind": {"enum": CONTROLLER_KINDS},
                "target": {"type": "string"},
                "slots": {
                    "type": "array",
                    "maxItems": 5,
                    "items": {"oneOf": [{"type": "null"}, {"$ref": "#/$defs/choice"}]},
                },
                "choices": {
                    "type": "array",
                    "maxItems": 5,
                    "items": {"$ref": "#/$defs/choice"},
                },
                "lock": {"$ref": "#/$defs/lock"},
            },
        },
        "choice": {
            "type": "object",
            "required": ["text", "next_story"],
            "properties": {
                "text": {"type": "string"},
                "next_story": {"type": "string"},
            },
        },
        "lock": {
            "type": "object",
            "required": ["kind"],
            "properties": {
                "kind": {"enum": LOCK_KINDS},
                "threshold": {"type": "integer", "minimum": 0},
                "endings": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
}

ENTRY_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "EntryManifest",
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string"},
        "has_multi_story": {"type": "boolean"},
        "start_story": {"type": ["string", "null"]},
        "ui": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {
                    "type": "object",
                    "properties": {
                        "position": _POINT,
                        "scale": _POINT,
                        "text_size": {"type": ["number", "null"]},
                    },
                },
            },
        },
        "chapters": {
            "type": "object",
            "propertyNames": {"pattern": "^[0-9]+$"},
            "additionalProperties": {
                "type": "object",
                "required": ["story_id"],
                "properties": {
                    "story_id": {"type": "string"},
                    "title": {"type": "string"},
                    "condition": {
                        "type": "object",
                        "required": ["kind"],
                        "properties": {
                            "kind": {"enum": ["prelude", "locked"]},
                            "fore_chapter": {"type": "integer", "minimum": 0},
                        },
                    },
                },
            },
        },
    },
}
