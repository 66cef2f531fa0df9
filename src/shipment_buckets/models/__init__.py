from .bucket import Bucket, FamilyFilter
from .env_cfg import EnvCfg

__all__ = [
    "Bucket",
    "FamilyFilter",
    "EnvCfg",
]
