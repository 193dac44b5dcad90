"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "vermatrix report",
    "type": "object",
    "required": ["schema_version", "generated_at", "title", "summary", "sections"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "title": {"type": "string"},
        "summary": {
            "type": "object",
            "required": ["sections", "passed", "failed", "not_applicable", "errors", "duration_s"],
            "properties": {
                "sections": {"type": "integer"},
                "passed": {"type": "integer"},
                "failed": {"type": "integer"},
                "not_applicable": {"type": "integer"},
                "errors": {"type": "integer"},
                "values": {"type": "integer"},
                "duration_s": {"type": "number"},
            },
        },
        "sections": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "data_file", "preamble", "columns", "rows", "footnotes"],
                "properties": {
                    "name": {"type": "string"},
                    "data_file": {"type": "string"},
                    "preamble": {
                        "type": "array",
                        "items": {
                            "type": "array",
                            "items": {"type": "string"},
                            "minItems": 2,
                            "maxItems": 2,
                        },
                    },
                    "columns": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "required": ["label", "install_path", "is_reference"],
                            "properties": {
                                "label": {"type": "string"},
                                "install_path": {"type": "string"},
                                "is_reference": {"type": "boolean"},
                                "version": {"type": ["string", "null"]},
                                "load_time_s": {"type": ["number", "null"]},
                                "error": {"type": ["string", "null"]},
                            },
                        },
                    },
                    "rows": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["id", "name", "cells"],
                            "properties": {
                                "id": {"type": "integer"},
                                "name": {"type": "string"},
                                "cells": {"type": "array", "items": {"type": "string"}},
                            },
                        },
                    },
                    "footnotes": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
}
