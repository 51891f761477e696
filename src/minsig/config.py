import os
from dataclasses import dataclass, fields
from typing import Optional

import yaml

from minsig.minhash_sig import InvalidParameter, SignatureGenerator


def _optional_int(value: str) -> Optional[int]:
    return None if value.strip().lower() in ("", "none", "null") else int(value)


@dataclass
class SignatureConfig:
    n: int = 1024               # domain size, expected max set cardinality
    sig_size: int = 128         # number of hash functions
    seed: Optional[int] = None  # None -> coefficients from OS entropy
    max_workers: int = 4        # thread pool size for batch runs

    @classmethod
    def _env_mappings(cls, prefix: str):
        return {
            f"{prefix}N": ("n", int),
            f"{prefix}SIG_SIZE": ("sig_size", int),
            f"{prefix}SEED": ("seed", _optional_int),
            f"{prefix}MAX_WORKERS": ("max_workers", int),
        }

    @classmethod
    def _read_yaml(cls, yaml_path: str) -> dict:
        with open(yaml_path, 'r') as f:
            yaml_config = yaml.safe_load(f) or {}
        if not isinstance(yaml_config, dict):
            raise InvalidParameter(f"{yaml_path}: expected a mapping at top level")
        known = {f.name for f in fields(cls)}
        return {k: v for k, v in yaml_config.items() if k in known}

    @classmethod
    def _read_env(cls, prefix: str) -> dict:
        config_dict = {}
        for env_var, (field_name, converter) in cls._env_mappings(prefix).items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    config_dict[field_name] = converter(value)
                except ValueError as exc:
                    raise InvalidParameter(f"{env_var}={value!r}: {exc}") from exc
        return config_dict

    @classmethod
    def load(cls, yaml_path: Optional[str] = None, env_prefix: str = "MINSIG_", **overrides) -> 'SignatureConfig':
        """YAML first, then environment, then keyword overrides."""
        config_dict = {}

        if yaml_path and os.path.exists(yaml_path):
            config_dict.update(cls._read_yaml(yaml_path))

        config_dict.update(cls._read_env(env_prefix))
        config_dict.update(overrides)

        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'SignatureConfig':
        if not os.path.exists(yaml_path):
            return cls()
        return cls(**cls._read_yaml(yaml_path))

    @classmethod
    def from_env(cls, prefix: str = "MINSIG_") -> 'SignatureConfig':
        return cls(**cls._read_env(prefix))

    def build(self) -> SignatureGenerator:
        return SignatureGenerator(self.n, self.sig_size, seed=self.seed)
