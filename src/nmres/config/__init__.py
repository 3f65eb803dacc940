from .models import BuildConfig, BuildPlatform, BuildType, CompressionLevel
from .loader import load_build_config, build_config_from_dict

__all__ = [
    "BuildConfig",
    "BuildPlatform",
    "BuildType",
    "CompressionLevel",
    "load_build_config",
    "build_config_from_dict",
]
