"""
Configuration and process-level wiring.
"""

from .config import (
    EngineConfig,
    PoolSpec,
    configure_logging,
    encode_price_sqrt,
    engine_config_from_dict,
    load_engine_config,
)

__all__ = [
    "EngineConfig",
    "PoolSpec",
    "configure_logging",
    "encode_price_sqrt",
    "engine_config_from_dict",
    "load_engine_config",
]
