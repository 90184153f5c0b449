import os
from rasterkit.domain.types import AppConfig
from rasterkit.domain.models import EncodeRequest, ImageFormat
from rasterkit.features.tone.models import AutoEnhanceConfig
from rasterkit.features.upscale.models import UPSCALE_PRESETS


APP_CONFIG = AppConfig(
    default_quality=0.9,
    compress_quality=0.8,
    upscale_presets=UPSCALE_PRESETS,
    max_workers=max(1, (os.cpu_count() or 1)),
    log_level="INFO",
    log_format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


DEFAULT_ENCODE_REQUEST = EncodeRequest(format=ImageFormat.PNG, quality=APP_CONFIG.default_quality)

# One-click enhancement used when a batch ENHANCE item carries no steps
DEFAULT_AUTO_ENHANCE = AutoEnhanceConfig()
