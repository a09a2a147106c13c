import logging
import os
from dataclasses import dataclass


@dataclass
class ReducerSettings:
    port: int
    log_level: str
    palette_max_colors: int
    palette_alpha_floor: int
    edge_alpha_floor: int
    hue_radius: float
    edge_boost_threshold: float
    timeout: float
    retries: int
    cache_ttl: float
    max_image_pixels: int

    @classmethod
    def from_env(cls) -> "ReducerSettings":
        return cls(
            port=int(os.getenv("PORT", "5600")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            # Older builds capped the palette at 1024 entries and only skipped
            # alpha == 0; both are reachable through the environment.
            palette_max_colors=int(os.getenv("PALETTE_MAX_COLORS", "1025")),
            palette_alpha_floor=int(os.getenv("PALETTE_ALPHA_FLOOR", "32")),
            edge_alpha_floor=int(os.getenv("EDGE_ALPHA_FLOOR", "10")),
            hue_radius=float(os.getenv("HUE_RADIUS", "127.5")),
            edge_boost_threshold=float(os.getenv("EDGE_BOOST_THR", "30")),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            cache_ttl=float(os.getenv("CACHE_TTL", "5")),
            max_image_pixels=int(os.getenv("MAX_IMAGE_PIXELS", str(4096 * 4096))),
        )


SETTINGS = ReducerSettings.from_env()


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("palette-reducer")
