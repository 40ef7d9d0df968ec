# Author: Bradley R. Kinnard
# schema definitions for config and proof document validation

system_config_schema = {
    "type": "object",
    "required": ["circuit", "prover", "aggregation"],
    "properties": {
        "circuit": {
            "type": "object",
            "required": ["wasm", "zkey", "verification_key"],
            "properties": {
                "wasm": {"type": "string"},
                "zkey": {"type": "string"},
                "verification_key": {"type": "string"}
            }
        },
        "prover": {
            "type": "object",
            "required": ["backend"],
            "properties": {
                "backend": {"type": "string", "enum": ["snarkjs"]},
                "snarkjs_bin": {"type": "string", "default": "snarkjs"},
                "timeout": {"type": "number", "exclusiveMinimum": 0, "default": 600}
            }
        },
        "hasher": {
            "type": "object",
            "properties": {
                "seed": {"type": "string", "minLength": 1, "default": "mimcsponge"},
                "rounds": {"type": "integer", "minimum": 2, "default": 220},
                "key": {"type": "integer", "minimum": 0, "default": 0}
            }
        },
        "aggregation": {
            "type": "object",
            "required": ["artifact_dir"],
            "properties": {
                "artifact_dir": {"type": "string"}
            }
        },
        "keys": {
            "type": "object",
            "properties": {
                "n_length": {"type": "integer", "minimum": 128, "default": 2048}
            }
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    "default": "INFO"
                }
            }
        }
    }
}

# field elements travel as decimal strings in snarkjs JSON
_field_element = {"type": "string", "pattern": "^[0-9]+$"}

_g1_point = {
    "type": "array",
    "minItems": 2,
    "maxItems": 3,
    "items": _field_element
}

_g2_point = {
    "type": "array",
    "minItems": 2,
    "maxItems": 3,
    "items": {
        "type": "array",
        "minItems": 2,
        "maxItems": 2,
        "items": _field_element
    }
}

groth16_proof_schema = {
    "type": "object",
    "required": ["pi_a", "pi_b", "pi_c"],
    "properties": {
        "pi_a": _g1_point,
        "pi_b": _g2_point,
        "pi_c": _g1_point,
        "protocol": {"type": "string"},
        "curve": {"type": "string"}
    }
}

public_signals_schema = {
    "type": "array",
    "items": _field_element
}

verification_key_schema = {
    "type": "object",
    "required": ["protocol", "curve", "nPublic", "vk_alpha_1", "vk_beta_2",
                 "vk_gamma_2", "vk_delta_2", "IC"],
    "properties": {
        "protocol": {"type": "string", "enum": ["groth16"]},
        "curve": {"type": "string"},
        "nPublic": {"type": "integer", "minimum": 0},
        "vk_alpha_1": {"type": "array"},
        "vk_beta_2": {"type": "array"},
        "vk_gamma_2": {"type": "array"},
        "vk_delta_2": {"type": "array"},
        "IC": {"type": "array", "minItems": 1}
    }
}
