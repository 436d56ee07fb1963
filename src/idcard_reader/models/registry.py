"""
Unified model registry: resolve local paths for all model weights.

A file is taken from the local models directory when present; otherwise it
is fetched from the configured HuggingFace repository via huggingface_hub,
which handles caching, resumable downloads, and integrity checks.

Usage:
    from idcard_reader.models import ModelRegistry

    registry = ModelRegistry(models_dir="./models")
    path = registry.get("card_segmenter", "model")
    print(registry.status())
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from .config import ALL_GROUPS, ModelFile, ModelGroup, default_models_dir, default_repo_id

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Central manager for all model weights."""

    def __init__(
        self,
        models_dir: Optional[Union[str, Path]] = None,
        repo_id: Optional[str] = None,
    ):
        """
        Args:
            models_dir: Local directory laid out like the repo
                (default: $IDCARD_READER_MODELS_DIR)
            repo_id: HuggingFace repository to download from
                (default: $IDCARD_READER_HF_REPO)
        """
        if models_dir is None:
            models_dir = default_models_dir()
        self._models_dir = Path(models_dir) if models_dir else None
        self._repo_id = repo_id if repo_id is not None else default_repo_id()
        self._groups = ALL_GROUPS

    @property
    def models_dir(self) -> Optional[Path]:
        return self._models_dir

    @property
    def repo_id(self) -> Optional[str]:
        return self._repo_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, group_name: str, file_key: str = "model") -> Path:
        """Return the local path for a model file, downloading if needed.

        Args:
            group_name: e.g. "card_segmenter", "text_detector"
            file_key:   e.g. "model"

        Returns:
            Resolved Path to the model file on disk.

        Raises:
            KeyError: Unknown group or file key.
            FileNotFoundError: File is not local and no repo is configured.
        """
        group = self._resolve_group(group_name)
        mf = self._resolve_file(group, file_key)
        return self._ensure_file(mf)

    def get_group_paths(self, group_name: str) -> Dict[str, Path]:
        """Return *all* resolved paths for a model group."""
        group = self._resolve_group(group_name)
        return {key: self._ensure_file(mf) for key, mf in group.files.items()}

    def status(self) -> str:
        """Return a human-readable status report."""
        lines = [
            "Model Registry Status",
            f"Models dir: {self._models_dir or '-'}",
            f"Repository: {self._repo_id or '-'}",
            "=" * 60,
        ]
        for group in self._groups.values():
            lines.append(f"\n{group.name}  ({group.description})")
            for key, mf in group.files.items():
                local = self._find_local(mf)
                if local is None:
                    local = self._find_cached(mf)
                if local is not None:
                    mark = "OK"
                    loc = str(local)
                else:
                    mark = "MISSING"
                    loc = f"hf://{self._repo_id}/{mf.filename}" if self._repo_id else "-"
                lines.append(f"  [{mark:>7}]  {key:<8} {mf.filename:<32} {loc}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_group(self, name: str) -> ModelGroup:
        if name not in self._groups:
            available = ", ".join(self._groups)
            raise KeyError(f"Unknown model group '{name}'. Available: {available}")
        return self._groups[name]

    @staticmethod
    def _resolve_file(group: ModelGroup, key: str) -> ModelFile:
        if key not in group.files:
            available = ", ".join(group.files)
            raise KeyError(
                f"Unknown file '{key}' in group '{group.name}'. Available: {available}"
            )
        return group.files[key]

    def _find_local(self, mf: ModelFile) -> Optional[Path]:
        if self._models_dir is None:
            return None
        path = self._models_dir / mf.filename
        return path if path.is_file() else None

    def _ensure_file(self, mf: ModelFile) -> Path:
        """Return the local path, downloading via HF Hub if needed."""
        local = self._find_local(mf)
        if local is not None:
            return local

        if not self._repo_id:
            raise FileNotFoundError(
                f"Model file '{mf.filename}' not found in "
                f"{self._models_dir or '<no models dir>'} and no HuggingFace repo configured"
            )

        from huggingface_hub import hf_hub_download

        logger.info(f"Downloading {mf.filename} from {self._repo_id}")
        return Path(hf_hub_download(self._repo_id, mf.filename))

    def _find_cached(self, mf: ModelFile) -> Optional[Path]:
        """Check if a file is already in the HuggingFace cache."""
        if not self._repo_id:
            return None
        from huggingface_hub import try_to_load_from_cache

        result = try_to_load_from_cache(self._repo_id, mf.filename)
        if isinstance(result, str):
            return Path(result)
        return None
